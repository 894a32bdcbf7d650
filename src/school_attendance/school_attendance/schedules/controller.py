from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import date_arg, error_response, login_required
from ..core.enums import WeekParity
from ..core.exceptions import DomainError, ValidationError
from ..container import Container


def _subject_dict(subject, slots=()) -> dict:
    return {
        "id": subject.id,
        "name": subject.name,
        "code": subject.code,
        "room": subject.room,
        "color": subject.color,
        "isHomeroom": subject.is_homeroom,
        "times": [s.time for s in slots if s.time],
    }


def register(app: Flask, container: Container) -> None:
    schedules = container.schedule_service

    @app.route("/api/schedule/day", endpoint="schedule_day")
    @login_required
    def schedule_day():
        try:
            day = date_arg()
            subjects = container.roster_service.subjects()
        except DomainError as e:
            return error_response(e)

        info = schedules.schedule_info(day)
        return jsonify(
            {
                "date": day.isoformat(),
                "week": info.week.value,
                "day": info.day,
                "displayText": info.display_text,
                "subjects": [
                    _subject_dict(s, schedules.slots_on(s, day))
                    for s in schedules.scheduled_subjects(subjects, day)
                ],
            }
        )

    @app.route("/api/schedule/week", endpoint="schedule_week")
    @login_required
    def schedule_week():
        try:
            parity = WeekParity(request.args["week"]) if request.args.get("week") else None
        except ValueError:
            return error_response(ValidationError("week must be week1 or week2"))
        try:
            day = date_arg()
            subjects = container.roster_service.subjects()
        except DomainError as e:
            return error_response(e)

        week = schedules.subjects_for_week(subjects, parity, today=day)
        return jsonify(
            {
                "week": week["week"].value,
                "weekText": schedules.week_display_text(week["week"]),
                "totalSubjects": week["total_subjects"],
                "schedule": {
                    name: [
                        {
                            **_subject_dict(s),
                            "display": schedules.format_schedule_display(
                                slot for slot in s.slots(week["week"]) if slot.falls_on(name)
                            ),
                        }
                        for s in day_subjects
                    ]
                    for name, day_subjects in week["schedule"].items()
                },
            }
        )
