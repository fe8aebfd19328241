"""
API Views for the Study Dashboard.

This module provides the REST API endpoints for scoring assignments,
extracting tasks from free text, importing classroom coursework, and
managing the per-session dashboard.
"""

from datetime import datetime
import logging

from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, throttle_classes
from rest_framework.response import Response
from rest_framework.request import Request
from rest_framework.throttling import AnonRateThrottle
from drf_spectacular.utils import extend_schema
from drf_spectacular.types import OpenApiTypes

from .classroom import tasks_from_courses
from .dashboard import Dashboard, DashboardFull, TaskNotFound
from .errors import ApiError, ErrorCode
from .parsing import parse_tasks_from_text
from .recommendations import get_recommendations
from .scoring import due_label, priority_factors, rank_tasks, task_to_dict
from .serializers import (
    ClassroomImportSerializer,
    ParseTextSerializer,
    TaskBulkInputSerializer,
)
from .storage import SessionTaskStore


logger = logging.getLogger(__name__)


# ============================================
# RATE LIMITING CLASSES
# ============================================

class ScoreRateThrottle(AnonRateThrottle):
    """Rate limit for scoring endpoints - 30 requests per minute."""
    rate = '30/min'


class ParseRateThrottle(AnonRateThrottle):
    """Rate limit for text extraction - 20 requests per minute."""
    rate = '20/min'


class DashboardRateThrottle(AnonRateThrottle):
    """Rate limit for dashboard reads and changes - 60 requests per minute."""
    rate = '60/min'


# ============================================
# HELPERS
# ============================================

def local_now() -> datetime:
    """Current wall-clock time in TIME_ZONE, as a naive datetime."""
    return timezone.localtime(timezone.now()).replace(tzinfo=None)


def max_text_length() -> int:
    return settings.STUDY_DASHBOARD.get('MAX_TEXT_LENGTH', 5000)


def get_dashboard(request: Request) -> Dashboard:
    config = settings.STUDY_DASHBOARD
    return Dashboard(
        SessionTaskStore(request.session),
        max_manual_tasks=config.get('MAX_MANUAL_TASKS'),
        max_hidden_tasks=config.get('MAX_HIDDEN_TASKS')
    )


def task_payload(task, now: datetime) -> dict:
    """Serialize a scored task with its display label and score factors."""
    data = task_to_dict(task)
    factors = priority_factors(task, now)
    data['due_label'] = due_label(task, now.date())
    data['factors'] = factors.to_dict() if factors else None
    return data


def ranked_response(tasks, now: datetime, **extra) -> Response:
    ranked = rank_tasks(tasks, now)
    return Response({
        'success': True,
        'error_code': ErrorCode.SUCCESS.value,
        'count': len(ranked),
        **extra,
        'tasks': [task_payload(t, now) for t in ranked],
        'recommendations': get_recommendations(ranked, now),
    })


def invalid_input(errors) -> Response:
    return Response(
        ApiError(
            code=ErrorCode.ERR_INVALID_INPUT,
            message='Invalid input data. Please check your request format.',
            errors=errors
        ).to_dict(),
        status=status.HTTP_400_BAD_REQUEST
    )


def dashboard_full(exc: DashboardFull) -> Response:
    return Response(
        ApiError(
            code=ErrorCode.ERR_DASHBOARD_FULL,
            message=f'Your dashboard can hold at most {exc.limit} tasks. Delete or reset some first.'
        ).to_dict(),
        status=status.HTTP_400_BAD_REQUEST
    )


# ============================================
# API ENDPOINTS
# ============================================

@extend_schema(
    summary="Score and rank tasks",
    description="""
    Score a list of tasks and return them sorted by priority, highest first.

    Estimated minutes, impact and context-switch cost are optional and
    default to 60, 3 and 2. Tasks without a due date score a neutral 0.5.
    """,
    request=TaskBulkInputSerializer,
    responses={200: OpenApiTypes.OBJECT},
    tags=['Scoring']
)
@api_view(['POST'])
@throttle_classes([ScoreRateThrottle])
def score_tasks(request: Request) -> Response:
    """
    POST /api/tasks/score/

    Request Body:
    {
        "tasks": [
            {"title": "...", "course": "...", "due_date": "2025-01-31",
             "estimated_minutes": 90, "impact": 4, "context_switch_cost": 2}
        ]
    }
    """
    serializer = TaskBulkInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input(serializer.errors)

    return ranked_response(serializer.create_records(), local_now())


@extend_schema(
    summary="Extract tasks from text",
    description="""
    Split free text into sentences and turn the ones that mention schoolwork
    into scored tasks. Course, due date and effort are inferred from keywords.
    With `save: true` the tasks are added to this session's dashboard.
    """,
    request=ParseTextSerializer,
    responses={200: OpenApiTypes.OBJECT},
    tags=['Extraction']
)
@api_view(['POST'])
@throttle_classes([ParseRateThrottle])
def parse_text(request: Request) -> Response:
    """
    POST /api/tasks/parse/

    Request Body:
    {
        "text": "I need to finish my chemistry lab report due tomorrow.",
        "save": false      // Optional
    }
    """
    serializer = ParseTextSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input(serializer.errors)

    text = serializer.validated_data['text']
    if not text.strip():
        return Response(
            ApiError(
                code=ErrorCode.ERR_EMPTY_TEXT,
                message='Please enter some text describing your tasks.',
                field='text'
            ).to_dict(),
            status=status.HTTP_400_BAD_REQUEST
        )

    limit = max_text_length()
    if len(text) > limit:
        return Response(
            ApiError(
                code=ErrorCode.ERR_TEXT_TOO_LONG,
                message=f'Text must be at most {limit} characters.',
                field='text'
            ).to_dict(),
            status=status.HTTP_400_BAD_REQUEST
        )

    now = local_now()
    tasks = parse_tasks_from_text(text, now)
    saved = serializer.validated_data['save'] and bool(tasks)
    if saved:
        try:
            get_dashboard(request).add_manual_tasks(tasks)
        except DashboardFull as exc:
            return dashboard_full(exc)
        logger.info("Saved %d parsed task(s) to the dashboard", len(tasks))

    return Response({
        'success': True,
        'error_code': ErrorCode.SUCCESS.value,
        'count': len(tasks),
        'saved': saved,
        'tasks': [task_payload(t, now) for t in tasks],
        'message': (
            f"Found {len(tasks)} task(s) in your text."
            if tasks else
            "No tasks found. Try mentioning an assignment, reading, quiz or deadline."
        )
    })


@extend_schema(
    summary="Get study recommendations",
    description="Return guidance strings for a list of tasks.",
    request=TaskBulkInputSerializer,
    responses={200: OpenApiTypes.OBJECT},
    tags=['Scoring']
)
@api_view(['POST'])
@throttle_classes([ScoreRateThrottle])
def recommendations(request: Request) -> Response:
    """
    POST /api/tasks/recommendations/
    """
    serializer = TaskBulkInputSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input(serializer.errors)

    now = local_now()
    tasks = [t.refresh(now) for t in serializer.create_records()]
    return Response({
        'success': True,
        'error_code': ErrorCode.SUCCESS.value,
        'recommendations': get_recommendations(tasks, now),
    })


@extend_schema(
    summary="Import classroom coursework",
    description="""
    Map coursework already fetched from the classroom API into tasks and
    merge them with this session's dashboard. Deleted tasks stay hidden.
    """,
    request=ClassroomImportSerializer,
    responses={200: OpenApiTypes.OBJECT},
    tags=['Dashboard']
)
@api_view(['POST'])
@throttle_classes([ScoreRateThrottle])
def import_classroom(request: Request) -> Response:
    """
    POST /api/classroom/import/

    Request Body:
    {
        "courses": [
            {"name": "Biology", "courseWork": [
                {"id": "123", "title": "Lab 2", "dueDate": {"year": 2025, "month": 2, "day": 3},
                 "dueTime": {"hours": 17}, "alternateLink": "https://..."}
            ]}
        ]
    }
    """
    serializer = ClassroomImportSerializer(data=request.data)
    if not serializer.is_valid():
        return invalid_input(serializer.errors)

    now = local_now()
    fetched = tasks_from_courses(serializer.validated_data['courses'], now)
    visible = get_dashboard(request).visible_tasks(fetched, now)
    return ranked_response(visible, now, imported=len(fetched))


@extend_schema(
    summary="Get the dashboard",
    description="Return this session's manual tasks, ranked, with recommendations.",
    responses={200: OpenApiTypes.OBJECT},
    tags=['Dashboard']
)
@api_view(['GET'])
@throttle_classes([DashboardRateThrottle])
def dashboard(request: Request) -> Response:
    """
    GET /api/dashboard/
    """
    now = local_now()
    return ranked_response(get_dashboard(request).visible_tasks(now=now), now)


@extend_schema(
    summary="Delete a task",
    description="Remove a manual task, or hide an imported one for this session.",
    responses={200: OpenApiTypes.OBJECT, 400: OpenApiTypes.OBJECT},
    tags=['Dashboard']
)
@api_view(['DELETE'])
@throttle_classes([DashboardRateThrottle])
def delete_task(request: Request, task_id: str) -> Response:
    """
    DELETE /api/dashboard/tasks/<task_id>/
    """
    try:
        get_dashboard(request).delete_task(task_id)
    except DashboardFull as exc:
        return dashboard_full(exc)
    return Response({
        'success': True,
        'error_code': ErrorCode.SUCCESS.value,
        'task_id': task_id,
    })


@extend_schema(
    summary="Complete a task",
    description="Mark a manual task as completed.",
    request=None,
    responses={200: OpenApiTypes.OBJECT, 404: OpenApiTypes.OBJECT},
    tags=['Dashboard']
)
@api_view(['POST'])
@throttle_classes([DashboardRateThrottle])
def complete_task(request: Request, task_id: str) -> Response:
    """
    POST /api/dashboard/tasks/<task_id>/complete/
    """
    now = local_now()
    try:
        task = get_dashboard(request).complete_task(task_id, now)
    except TaskNotFound:
        return Response(
            ApiError(
                code=ErrorCode.ERR_TASK_NOT_FOUND,
                message=f"No manual task with id {task_id}",
                task_id=task_id
            ).to_dict(),
            status=status.HTTP_404_NOT_FOUND
        )

    return Response({
        'success': True,
        'error_code': ErrorCode.SUCCESS.value,
        'task': task_payload(task, now),
    })


@extend_schema(
    summary="Reset the dashboard",
    description="Forget this session's manual tasks and deleted task ids.",
    request=None,
    responses={200: OpenApiTypes.OBJECT},
    tags=['Dashboard']
)
@api_view(['POST'])
@throttle_classes([DashboardRateThrottle])
def reset_dashboard(request: Request) -> Response:
    """
    POST /api/dashboard/reset/
    """
    get_dashboard(request).reset()
    return Response({
        'success': True,
        'error_code': ErrorCode.SUCCESS.value,
    })


@extend_schema(
    summary="API information",
    description="Get API information and available endpoints.",
    responses={200: OpenApiTypes.OBJECT},
    tags=['Info']
)
@api_view(['GET'])
def api_info(request: Request) -> Response:
    """
    Return API information and available endpoints.

    GET /api/
    """
    return Response({
        'name': 'Study Dashboard API',
        'version': '1.0.0',
        'documentation': '/api/docs/',
        'features': [
            'Assignment priority scoring',
            'Task extraction from free text',
            'Study recommendations',
            'Classroom coursework import',
            'Per-session manual and hidden tasks',
            'OpenAPI/Swagger documentation'
        ],
        'endpoints': {
            'POST /api/tasks/score/': 'Score and rank tasks',
            'POST /api/tasks/parse/': 'Extract tasks from free text',
            'POST /api/tasks/recommendations/': 'Get study recommendations',
            'POST /api/classroom/import/': 'Import fetched classroom coursework',
            'GET /api/dashboard/': "This session's tasks",
            'DELETE /api/dashboard/tasks/<id>/': 'Delete or hide a task',
            'POST /api/dashboard/tasks/<id>/complete/': 'Complete a manual task',
            'POST /api/dashboard/reset/': 'Clear manual and hidden tasks',
            'GET /api/docs/': 'Interactive API documentation',
            'GET /api/schema/': 'OpenAPI schema',
            'GET /api/': 'This info endpoint'
        },
        'error_codes': {
            code.value: code.name for code in ErrorCode
        }
    })
