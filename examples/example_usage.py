"""Example: drive the engine through its services, without any web layer.

Marks one school day and prints the per-class dashboard for it.
"""

from datetime import date

from src.school_attendance.school_attendance.main import create_engine


def main():
    container = create_engine()
    today = date.today()

    result = container.attendance_service.mark_daily_roster(school_id=1, work_date=today, absent_student_ids=[3])
    print(f"marked {result.success_count}/{result.total_students} (failed={result.failure_count})")

    for class_key, summary in container.statistics_service.daily_summary_by_class(1, today).items():
        print(f"{class_key}: {summary.attendance_percentage:.1f}% present")


if __name__ == "__main__":
    main()
