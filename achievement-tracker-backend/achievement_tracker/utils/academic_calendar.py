from datetime import datetime

def academic_year(when: datetime) -> str:
    """Academic year label recorded on a submission (calendar year)"""
    return str(when.year)

def semester(when: datetime) -> str:
    """'1' for January-June, '2' for July-December"""
    return "1" if when.month <= 6 else "2"
