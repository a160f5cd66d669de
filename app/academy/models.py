"""
Academy models: teachers, students, groups and enrollments.

Models:
    Teacher: Staff member leading one or more groups
    Student: Learner with a pre-paid credit balance
    Group: A class with a monthly tuition fee
    Enrollment: Student membership in a group

Balance Semantics:
    Student.balance is credit-positive: money paid in advance that is
    consumed when monthly debts are generated. It is never negative;
    a check constraint enforces this at the database level. Writes go
    through billing.balances.BalanceLedger only.

Usage:
    from academy.models import Enrollment, Group, Student, Teacher

    teacher = Teacher.objects.create(full_name="Dilnoza Karimova", phone="+998901112233")
    group = Group.objects.create(
        name="General English B1",
        teacher=teacher,
        monthly_fee=Decimal("150000.00"),
    )
    student = Student.objects.create(full_name="Aziz Rahimov", phone="+998907654321")
    Enrollment.objects.create(student=student, group=group)
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q

from core.models import BaseModel


class Teacher(BaseModel):
    """
    A teacher leading groups.

    Fields:
        full_name: Display name
        phone: Contact phone, unique per teacher
    """

    full_name = models.CharField(
        max_length=200,
        help_text="Teacher's full name",
    )
    phone = models.CharField(
        max_length=20,
        unique=True,
        help_text="Contact phone number",
    )

    class Meta:
        ordering = ["full_name"]

    def __str__(self) -> str:
        return self.full_name


class Student(BaseModel):
    """
    A student of the tuition center.

    Fields:
        full_name: Display name
        phone: Contact phone
        birth_date: Optional date of birth
        balance: Pre-paid credit in the center's currency (never negative)

    Constraints:
        - balance >= 0
    """

    full_name = models.CharField(
        max_length=200,
        help_text="Student's full name",
    )
    phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="Contact phone number",
    )
    birth_date = models.DateField(
        null=True,
        blank=True,
        help_text="Date of birth",
    )
    balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Pre-paid credit consumed by monthly debts",
    )

    class Meta:
        ordering = ["full_name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(balance__gte=0),
                name="academy_student_balance_non_negative",
            )
        ]

    def __str__(self) -> str:
        return self.full_name


class Group(BaseModel):
    """
    A class of students with a monthly tuition fee.

    The fee is read at debt generation time. Changing it affects only
    periods generated afterwards; existing debts keep their amounts.

    Fields:
        name: Group name
        teacher: Teacher leading the group (optional)
        monthly_fee: Tuition charged per billing period
        start_date: First lesson date
        lesson_time: Regular lesson start time
        students: Roster, through Enrollment
    """

    name = models.CharField(
        max_length=100,
        help_text="Group name",
    )
    teacher = models.ForeignKey(
        Teacher,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="groups",
        help_text="Teacher leading this group",
    )
    monthly_fee = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Tuition charged per billing period",
    )
    start_date = models.DateField(
        null=True,
        blank=True,
        help_text="First lesson date",
    )
    lesson_time = models.TimeField(
        null=True,
        blank=True,
        help_text="Regular lesson start time",
    )
    students = models.ManyToManyField(
        Student,
        through="Enrollment",
        related_name="groups",
        blank=True,
    )

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(monthly_fee__gte=0),
                name="academy_group_monthly_fee_non_negative",
            )
        ]

    def __str__(self) -> str:
        return self.name


class Enrollment(BaseModel):
    """
    Membership of a student in a group.

    A student may belong to several groups. Billing uses the most
    recently created enrollment (see billing.enrollment).

    Constraints:
        - Unique combination of (student, group)
    """

    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name="enrollments",
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name="enrollments",
    )

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "group"],
                name="academy_unique_enrollment",
            )
        ]

    def __str__(self) -> str:
        return f"{self.student} in {self.group}"
