from __future__ import annotations

from datetime import timedelta

from flask import Flask, Response, jsonify, request

from ..common.datetime_utils import week_dates
from ..common.http import date_arg, error_response, list_arg, roles_required
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container

MONITOR_ROLES = (Role.HOMEROOM, Role.SUPERVISOR)


def register(app: Flask, container: Container) -> None:
    reports = container.report_service
    roster = container.roster_service

    def _section_ids() -> list[str]:
        ids = list_arg("sectionIds")
        if not ids:
            raise ValidationError("sectionIds is required")
        return ids

    def _day_context():
        day = date_arg()
        section_ids = _section_ids()
        students = roster.students_in_sections(section_ids)
        subjects = container.schedule_service.subjects_for_grade(
            roster.subjects(), students, roster.subject_names_by_id()
        )
        day_data = container.attendance_service.load_day(day, section_ids=section_ids)
        return day, section_ids, students, subjects, day_data

    @app.route("/api/reports/daily", endpoint="report_daily")
    @roles_required(*MONITOR_ROLES)
    def report_daily():
        try:
            day, _, students, subjects, day_data = _day_context()
        except DomainError as e:
            return error_response(e)
        return jsonify(
            {
                "date": day.isoformat(),
                "subjects": reports.daily_summary(subjects, day_data),
                "overall": reports.overall_summary(students, subjects, day_data).to_dict(),
            }
        )

    @app.route("/api/reports/weekly", endpoint="report_weekly")
    @roles_required(*MONITOR_ROLES)
    def report_weekly():
        try:
            start = date_arg("start")
            start -= timedelta(days=start.weekday())
            section_ids = _section_ids()
            students = roster.students_in_sections(section_ids)
            subjects = container.schedule_service.subjects_for_grade(
                roster.subjects(), students, roster.subject_names_by_id()
            )
            history = container.attendance_service.load_history(week_dates(start), section_ids=section_ids)
        except DomainError as e:
            return error_response(e)

        payload = {"weekStart": start.isoformat(), "days": reports.weekly_summary(subjects, history, start)}
        student_id = request.args.get("studentId")
        if student_id:
            student = next((s for s in students if s.id == student_id), None)
            if student is not None:
                payload["student"] = reports.student_week(student, subjects, history, start)
        return jsonify(payload)

    @app.route("/api/reports/grid", endpoint="report_grid")
    @roles_required(*MONITOR_ROLES)
    def report_grid():
        try:
            day, _, students, subjects, day_data = _day_context()
            names = roster.subject_names_by_id()
        except DomainError as e:
            return error_response(e)

        rows = []
        for student in students:
            rows.append(
                {
                    "id": student.id,
                    "name": student.full_name,
                    "cells": {
                        s.name: reports.attendance_cell(student, s, day_data, subject_names_by_id=names).to_dict()
                        for s in subjects
                    },
                }
            )
        return jsonify(
            {
                "date": day.isoformat(),
                "subjects": [s.name for s in subjects],
                "students": rows,
                "stats": reports.student_stats(students, subjects, day_data),
            }
        )

    @app.route("/api/reports/export.csv", endpoint="report_export")
    @roles_required(*MONITOR_ROLES)
    def report_export():
        try:
            day, section_ids, students, subjects, day_data = _day_context()
        except DomainError as e:
            return error_response(e)

        if request.args.get("kind") == "summary":
            body = reports.export_summary_csv(subjects, day_data)
            filename = f"attendance_report_{day.isoformat()}.csv"
        else:
            body = reports.export_csv(students, subjects, day_data)
            filename = f"{'_'.join(section_ids)}_attendance_{day.isoformat()}.csv"
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
