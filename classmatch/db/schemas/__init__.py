from .availability import AvailabilityOut, AvailabilitySubmit, Match, MatchQuery
from .class_type import ClassType, ClassTypeCreate, ClassTypeRef, ClassTypeUpdate
from .classes import (
    ClassCancel,
    ClassCreate,
    ClassListQuery,
    ClassOut,
    ClassRef,
    ClassReminder,
    ClassUpdate,
    InitialMember,
    JoinRequest,
    LeaveRequest,
    MemberOut,
)
from .user import MemberDetails, UserProfile, UserRef, UserRegister
