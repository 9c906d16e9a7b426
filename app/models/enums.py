from enum import Enum


class GradeLevel(str, Enum):
    GRADE_7 = "Grade 7"
    GRADE_8 = "Grade 8"
    GRADE_9 = "Grade 9"
    GRADE_10 = "Grade 10"
    GRADE_11 = "Grade 11"
    GRADE_12 = "Grade 12"


class Strand(str, Enum):
    NO_STRAND = "No Strand"
    STEM = "STEM"
    ABM = "ABM"
    HUMSS = "HUMSS"
    GAS = "GAS"
    TVL = "TVL"
    SPORTS = "Sports"
    ARTS_AND_DESIGN = "Arts & Design"


class SubjectStatus(str, Enum):
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class UserRole(str, Enum):
    ADMIN = "Admin"
    STUDENT = "Student"
    TEACHER = "Teacher"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Allowed values of a fixed enumeration, in declaration order."""
    return [member.value for member in enum_cls]
