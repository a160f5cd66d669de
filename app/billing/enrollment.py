"""
Billing group lookup.

A student may be enrolled in several groups but owes one debt per period.
The debt is billed against the group of the most recent enrollment; ties
on created_at go to the highest enrollment id.
"""

from __future__ import annotations

from academy.models import Enrollment, Group


class EnrollmentLookup:
    """Django implementation of EnrollmentRepository."""

    def billing_group_for(self, student_id: int) -> Group | None:
        enrollment = (
            Enrollment.objects.filter(student_id=student_id)
            .select_related("group")
            .order_by("-created_at", "-id")
            .first()
        )
        if enrollment is None:
            return None
        return enrollment.group
