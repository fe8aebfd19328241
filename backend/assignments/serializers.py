"""
Serializers for the Study Dashboard API.

This module validates incoming task, text and coursework payloads. Numeric
task fields are optional: anything left out takes the record defaults.
"""

from rest_framework import serializers

from .scoring import TaskRecord, TaskSource


class TaskInputSerializer(serializers.Serializer):
    """
    Serializer for validating incoming task data.

    Tasks submitted for scoring are not persisted; `create_record()` turns
    the validated data into a TaskRecord.
    """

    id = serializers.CharField(max_length=255, required=False, allow_blank=True)
    title = serializers.CharField(max_length=255, required=True)
    course = serializers.CharField(max_length=255, required=False, allow_blank=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    due_time = serializers.TimeField(required=False, allow_null=True)
    estimated_minutes = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    impact = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    context_switch_cost = serializers.IntegerField(
        min_value=1, max_value=5, required=False, allow_null=True
    )
    completed = serializers.BooleanField(required=False, default=False)
    link = serializers.CharField(required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_title(self, value):
        """Ensure title is not empty or just whitespace."""
        if not value or not value.strip():
            raise serializers.ValidationError("Title cannot be empty")
        return value.strip()

    def create_record(self) -> TaskRecord:
        return build_record(self.validated_data)


def build_record(data) -> TaskRecord:
    """Turn validated task data into a TaskRecord; omitted numbers take the defaults."""
    return TaskRecord(
        id=data.get('id') or "",
        title=data['title'],
        course=data.get('course') or "",
        due_date=data.get('due_date'),
        due_time=data.get('due_time'),
        estimated_minutes=data.get('estimated_minutes'),
        impact=data.get('impact'),
        context_switch_cost=data.get('context_switch_cost'),
        completed=data.get('completed', False),
        link=data.get('link', ""),
        description=data.get('description', ""),
        source=TaskSource.MANUAL,
    )


class TaskBulkInputSerializer(serializers.Serializer):
    """
    Serializer for scoring and recommendation requests.
    """

    tasks = serializers.ListField(
        child=TaskInputSerializer(),
        allow_empty=True
    )

    def create_records(self):
        return [build_record(data) for data in self.validated_data['tasks']]


class ParseTextSerializer(serializers.Serializer):
    """
    Serializer for free-text task extraction.
    """

    text = serializers.CharField(required=True, allow_blank=True, trim_whitespace=False)
    save = serializers.BooleanField(required=False, default=False)


class DueDateSerializer(serializers.Serializer):
    year = serializers.IntegerField()
    month = serializers.IntegerField(min_value=1, max_value=12)
    day = serializers.IntegerField(min_value=1, max_value=31)


class DueTimeSerializer(serializers.Serializer):
    hours = serializers.IntegerField(min_value=0, max_value=23, required=False)
    minutes = serializers.IntegerField(min_value=0, max_value=59, required=False)


class CourseWorkSerializer(serializers.Serializer):
    """Mirror of the classroom `courseWork` resource fields we read."""

    id = serializers.CharField()
    title = serializers.CharField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    dueDate = DueDateSerializer(required=False)
    dueTime = DueTimeSerializer(required=False)
    alternateLink = serializers.CharField(required=False, allow_blank=True)


class CourseSerializer(serializers.Serializer):
    id = serializers.CharField(required=False)
    name = serializers.CharField()
    courseWork = CourseWorkSerializer(many=True, required=False)


class ClassroomImportSerializer(serializers.Serializer):
    """
    Serializer for coursework already fetched from the classroom API.
    """

    courses = CourseSerializer(many=True)
