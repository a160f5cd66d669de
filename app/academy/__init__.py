"""
Academy app for the tuition center's people and classes.

This app handles:
- Teachers and the groups they lead
- Students and their pre-paid credit balance
- Group enrollment (the roster linking students to groups)

Related apps:
    - billing: generates monthly debts from enrollments and balances

Usage:
    from academy.models import Enrollment, Group, Student

    group = Group.objects.create(name="IELTS evening", monthly_fee=Decimal("150000"))
    Enrollment.objects.create(student=student, group=group)
"""
