"""Plain-text subjects and bodies for every notification the service sends."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping


@dataclass(frozen=True, slots=True)
class Message:
    subject: str
    text: str


def _label(class_type: str | None) -> str:
    if not class_type:
        return "Class"
    return class_type[:1].upper() + class_type[1:]


def build_match_found_message(context: Mapping[str, Any]) -> Message:
    label = _label(context.get("classType"))
    return Message(
        subject="New Class Match Found!",
        text=(
            f"Hi {context.get('userName', '')},\n\n"
            f"A new {label} class has been formed on {context['day']} at {context['time']} "
            "with students who share your availability.\n"
            f"See your classes at {context.get('appUrl', '')}/classes"
        ),
    )


def build_join_confirmation_message(context: Mapping[str, Any]) -> Message:
    label = _label(context.get("classType"))
    return Message(
        subject=f"You're enrolled! Your {label} class starts {context['day']} at {context['time']}",
        text=(
            f"Hi {context.get('userName', '')},\n\n"
            f"You've successfully enrolled in a {label} class.\n\n"
            f"Day: {context['day']}\n"
            f"Time: {context['time']}\n"
            f"Enrollment: {context['currentEnrollment']} of {context['totalSpots']} spots"
        ),
    )


def build_operator_enrollment_message(context: Mapping[str, Any]) -> Message:
    label = _label(context.get("classType"))
    lines = [
        "A new student has just enrolled in one of your classes!",
        "",
        f"Name: {context.get('userName', '')}",
        f"Email: {context.get('userEmail') or 'Unknown'}",
        f"Phone: {context.get('userPhone') or 'Unknown'}",
        "",
        f"Class Type: {label}",
        f"Day: {context['day']}",
        f"Time: {context['time']}",
        f"Current enrollment: {context['currentEnrollment']} of {context['totalSpots']} spots "
        f"({context.get('fillRate', 0)}%)",
    ]
    if context.get("isFull"):
        lines += ["", "This class is now full!"]
    return Message(
        subject=(
            f"New student enrolled: {context.get('userName', '')} joined {label} class "
            f"({context['day']} {context['time']})"
        ),
        text="\n".join(lines),
    )


def build_welcome_message(context: Mapping[str, Any]) -> Message:
    return Message(
        subject="Welcome to the Class Scheduler!",
        text=(
            f"Hi {context.get('userName', '')},\n\n"
            "Thank you for signing up! You can join an existing class that fits your "
            "schedule or set your availability to be matched with others.\n"
            f"Get started at {context.get('appUrl', '')}/classes"
        ),
    )


def build_class_reminder_message(context: Mapping[str, Any]) -> Message:
    label = _label(context.get("classType"))
    text = (
        f"Reminder: your {label} class is scheduled for {context['day']} "
        f"at {context['time']}."
    )
    if context.get("message"):
        text += f"\n\n{context['message']}"
    return Message(subject=f"Reminder: {label} Class on {context['day']}", text=text)


TEMPLATES: dict[str, Callable[[Mapping[str, Any]], Message]] = {
    "match_found": build_match_found_message,
    "class_join_confirmation": build_join_confirmation_message,
    "operator_enrollment": build_operator_enrollment_message,
    "welcome": build_welcome_message,
    "class_reminder": build_class_reminder_message,
}


def render(template: str, context: Mapping[str, Any]) -> Message:
    try:
        builder = TEMPLATES[template]
    except KeyError as exc:
        raise ValueError(f"Unknown notification template {template}") from exc
    return builder(context)
