"""Instruction texts for the two extraction modes.

Relative dates are resolved by the model, so every prompt is rendered
against the date of the request.
"""

from __future__ import annotations

from datetime import date, timedelta

FIELDS_BLOCK = """Fields:
- task_name: the action to perform, short and imperative (required)
- assignee: the person responsible, or null if nobody is named
- due_date: YYYY-MM-DD, or null if no deadline is mentioned
- due_time: HH:MM in 24-hour notation, or null if no time is mentioned
- priority: P1 (urgent), P2 (high), P3 (normal) or P4 (low); P3 if not stated"""


def _next_weekday(today: date, weekday: int) -> date:
    """Next occurrence strictly after today (Monday=0)."""
    days = (weekday - today.weekday()) % 7 or 7
    return today + timedelta(days=days)


def _end_of_week(today: date) -> date:
    # the coming Friday; today itself when today is Friday
    return today + timedelta(days=(4 - today.weekday()) % 7)


def date_rules(today: date) -> str:
    tomorrow = today + timedelta(days=1)
    return (
        f"Today is {today:%A}, {today.isoformat()}. Resolve relative dates against it:\n"
        f'- "tomorrow" = {tomorrow.isoformat()}\n'
        f'- "today" or "tonight" = {today.isoformat()}; "tonight" without a time means 18:00\n'
        f'- "next week" = a date between {(today + timedelta(days=7)).isoformat()} '
        f"and {(today + timedelta(days=14)).isoformat()}\n"
        f'- a weekday name ("Monday", "next Monday") = the next future occurrence of that day, '
        f"e.g. Monday = {_next_weekday(today, 0).isoformat()}\n"
        f'- "end of week" = Friday {_end_of_week(today).isoformat()}'
    )


def single_task_instructions(today: date) -> str:
    tomorrow = today + timedelta(days=1)
    monday = _next_weekday(today, 0)
    return f"""You are a task parser that turns one natural-language task description into structured data.

{FIELDS_BLOCK}

{date_rules(today)}

Examples:
Input: "Finish landing page Aman by 11pm {tomorrow:%d %B}"
Output: {{"task_name": "Finish landing page", "assignee": "Aman", "due_date": "{tomorrow.isoformat()}", "due_time": "23:00", "priority": "P3"}}

Input: "High priority P1 meeting with John next Monday 2pm"
Output: {{"task_name": "Meeting", "assignee": "John", "due_date": "{monday.isoformat()}", "due_time": "14:00", "priority": "P1"}}

Return ONLY a single JSON object. No additional text or formatting."""


def meeting_instructions(today: date) -> str:
    tomorrow = today + timedelta(days=1)
    friday = _end_of_week(today)
    return f"""You extract action items from a meeting transcript.
Every action item must have a clearly identified person responsible for it; skip items nobody owns.

{FIELDS_BLOCK}

{date_rules(today)}

Example:
Input: "Priya: Rahul, please send the revised budget by tomorrow evening. Also Meera should book the venue before end of week, it's urgent."
Output: [
  {{"task_name": "Send the revised budget", "assignee": "Rahul", "due_date": "{tomorrow.isoformat()}", "due_time": "18:00", "priority": "P3"}},
  {{"task_name": "Book the venue", "assignee": "Meera", "due_date": "{friday.isoformat()}", "due_time": null, "priority": "P1"}}
]

Return ONLY a JSON array of objects (an empty array if there are no action items). No additional text or formatting."""
