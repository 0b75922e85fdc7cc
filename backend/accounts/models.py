from django.db import models
from django.contrib.auth.models import AbstractUser
from django.core.validators import RegexValidator


class UsernameValidator(RegexValidator):
    """Custom validator that allows spaces in usernames."""
    regex = r'^[\w\s.@+-]+$'
    message = 'Enter a valid username. This value may contain letters, numbers, spaces, and @/./+/-/_ characters.'
    flags = 0


class User(AbstractUser):
    """
    Base user model.
    Every actor (system admin, district head, college admin, teacher,
    student) is a user; `role` decides which subtree of the hierarchy the
    user may act on.
    """

    class Role(models.TextChoices):
        SYS_ADMIN = 'SysAdmin', 'System Admin'
        DISTRICT_HEAD = 'DistrictHead', 'District Head'
        COLLEGE_ADMIN = 'CollegeAdmin', 'College Admin'
        TEACHER = 'Teacher', 'Teacher'
        STUDENT = 'Student', 'Student'

    username = models.CharField(
        max_length=150,
        unique=True,
        help_text='Required. 150 characters or fewer. Letters, numbers, spaces, and @/./+/-/_ characters.',
        validators=[UsernameValidator()],
        error_messages={
            'unique': 'A user with that username already exists.',
        },
    )
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.STUDENT)

    def __str__(self):
        return self.username
