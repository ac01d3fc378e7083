from .availability import AvailabilitySlot, AvailabilityStatus, SlotKey, unique_slots
from .classes import ClassStatus, Member, ScheduledClass
