from studyplan.models.user import User
from studyplan.models.course import Course
from studyplan.models.assessment import Assessment
from studyplan.models.availability import Availability
from studyplan.models.study_block import StudyBlock
from studyplan.models.plan_summary import PlanSummary

__all__ = [
    "User",
    "Course",
    "Assessment",
    "Availability",
    "StudyBlock",
    "PlanSummary",
]
