"""
Unit Tests for the Study Dashboard.

This module covers the priority calculator, text extraction, recommendations,
classroom mapping, the session dashboard and the API endpoints.
"""

from django.conf import settings
from django.core.cache import cache
from django.test import SimpleTestCase, override_settings
from django.utils import timezone
from rest_framework.test import APITestCase
from rest_framework import status
from datetime import date, datetime, time, timedelta
from datetime import timezone as dt_timezone
from unittest import mock
import json

from . import views
from .classroom import NO_DESCRIPTION, sort_by_due_date, task_from_coursework, tasks_from_courses
from .dashboard import Dashboard, DashboardFull, TaskNotFound
from .parsing import TaskTextParser, parse_tasks_from_text
from .recommendations import ALL_CAUGHT_UP, get_recommendations
from .scoring import (
    PriorityCalculator,
    TaskRecord,
    TaskSource,
    TaskStatus,
    compute_priority,
    derive_status,
    due_label,
    rank_tasks,
    task_from_dict,
    task_to_dict,
)
from .storage import DELETED_TASK_IDS_KEY, MANUAL_TASKS_KEY, MemoryTaskStore
from .views import DashboardRateThrottle


NOW = datetime(2025, 3, 10, 12, 0)


def make_task(**kwargs):
    kwargs.setdefault('title', 'Task')
    return TaskRecord(**kwargs)


class TaskRecordTests(SimpleTestCase):
    """Tests for record defaults and derived fields."""

    def test_defaults_filled(self):
        """Records without numbers get the documented defaults."""
        task = make_task()

        self.assertEqual(task.course, 'General')
        self.assertEqual(task.estimated_minutes, 60)
        self.assertEqual(task.impact, 3)
        self.assertEqual(task.context_switch_cost, 2)
        self.assertIsNone(task.due_date)
        self.assertIsNone(task.priority_score)
        self.assertTrue(task.id)

    def test_invalid_numbers_defaulted(self):
        """Non-numeric or non-positive values fall back to defaults."""
        task = make_task(estimated_minutes='abc', impact=None, context_switch_cost='x')
        self.assertEqual(task.estimated_minutes, 60)
        self.assertEqual(task.impact, 3)
        self.assertEqual(task.context_switch_cost, 2)

        task = make_task(estimated_minutes=-15)
        self.assertEqual(task.estimated_minutes, 60)

    def test_out_of_range_ratings_clamped(self):
        task = make_task(impact=9, context_switch_cost=0)
        self.assertEqual(task.impact, 5)
        self.assertEqual(task.context_switch_cost, 1)

    def test_blank_course_defaults_to_general(self):
        self.assertEqual(make_task(course='   ').course, 'General')

    def test_string_dates_parsed(self):
        task = make_task(due_date='2025-03-12', due_time='17:30')
        self.assertEqual(task.due_date, date(2025, 3, 12))
        self.assertEqual(task.due_time, time(17, 30))

    def test_unparseable_date_is_no_due_date(self):
        self.assertIsNone(make_task(due_date='next tuesday').due_date)

    def test_due_at_defaults_to_end_of_day(self):
        task = make_task(due_date=date(2025, 3, 12))
        self.assertEqual(task.due_at, datetime(2025, 3, 12, 23, 59))

    def test_hours_until_due_negative_when_overdue(self):
        task = make_task(due_date=date(2025, 3, 1))
        self.assertLess(task.hours_until_due(NOW), 0)

    def test_refresh_sets_status_and_score(self):
        task = make_task(due_date=date(2025, 3, 11)).refresh(NOW)
        self.assertEqual(task.status, TaskStatus.URGENT)
        self.assertIsNotNone(task.priority_score)

    def test_completed_overrides_overdue(self):
        """Completion always wins over date-based urgency."""
        task = make_task(due_date=date(2025, 3, 1)).refresh(NOW)
        self.assertEqual(task.status, TaskStatus.URGENT)

        task.mark_completed(NOW)
        self.assertEqual(task.status, TaskStatus.COMPLETED)

    def test_round_trip_through_dict(self):
        task = make_task(
            title='Lab write-up',
            course='Biology',
            due_date=date(2025, 3, 14),
            due_time=time(9, 30),
            estimated_minutes=150,
            impact=4,
            context_switch_cost=3,
        ).refresh(NOW)

        data = task_to_dict(task)
        self.assertEqual(data['due_date'], '2025-03-14')
        self.assertEqual(data['due_time'], '09:30')
        self.assertEqual(data['status'], 'pending')

        restored = task_from_dict(json.loads(json.dumps(data)))
        self.assertEqual(restored.id, task.id)
        self.assertEqual(restored.due_at, task.due_at)
        self.assertEqual(restored.estimated_minutes, 150)

    def test_from_dict_with_missing_fields(self):
        task = task_from_dict({'title': 'Read'})
        self.assertEqual(task.estimated_minutes, 60)
        self.assertEqual(task.source, TaskSource.MANUAL)

    def test_from_dict_with_non_string_text(self):
        task = task_from_dict({'title': 5, 'course': 7})
        self.assertEqual(task.title, '5')
        self.assertEqual(task.course, '7')

    def test_status_derived_on_construction(self):
        """A new record is urgent or pending by its due date without a refresh."""
        today = date.today()

        self.assertEqual(make_task(due_date=today + timedelta(days=1)).status, TaskStatus.URGENT)
        self.assertEqual(make_task(due_date=today - timedelta(days=3)).status, TaskStatus.URGENT)
        self.assertEqual(make_task(due_date=today + timedelta(days=10)).status, TaskStatus.PENDING)
        self.assertEqual(make_task().status, TaskStatus.PENDING)
        self.assertEqual(
            make_task(due_date=today, completed=True).status, TaskStatus.COMPLETED
        )


class StatusTests(SimpleTestCase):
    """Tests for status derivation and due labels."""

    def setUp(self):
        self.today = NOW.date()

    def test_no_due_date_pending(self):
        self.assertEqual(derive_status(make_task(), self.today), TaskStatus.PENDING)

    def test_due_within_two_days_urgent(self):
        for days in (0, 1, 2):
            task = make_task(due_date=self.today + timedelta(days=days))
            self.assertEqual(derive_status(task, self.today), TaskStatus.URGENT)

    def test_due_in_three_days_pending(self):
        task = make_task(due_date=self.today + timedelta(days=3))
        self.assertEqual(derive_status(task, self.today), TaskStatus.PENDING)

    def test_overdue_urgent(self):
        task = make_task(due_date=self.today - timedelta(days=4))
        self.assertEqual(derive_status(task, self.today), TaskStatus.URGENT)

    def test_due_labels(self):
        self.assertEqual(due_label(make_task(), self.today), 'No due date')
        self.assertEqual(due_label(make_task(due_date=self.today - timedelta(days=1)), self.today), 'Overdue')
        self.assertEqual(due_label(make_task(due_date=self.today), self.today), 'Due today')
        self.assertEqual(due_label(make_task(due_date=self.today + timedelta(days=1)), self.today), 'Due tomorrow')
        self.assertEqual(due_label(make_task(due_date=self.today + timedelta(days=6)), self.today), 'Due in 6 days')


class PriorityCalculatorTests(SimpleTestCase):
    """Tests for the priority score."""

    def setUp(self):
        self.calculator = PriorityCalculator()
        self.due = date(2025, 3, 13)

    def test_no_due_date_neutral(self):
        """Tasks without a due date always score exactly 0.5."""
        for task in (
            make_task(),
            make_task(estimated_minutes=300, impact=5, context_switch_cost=1),
            make_task(estimated_minutes=10, impact=1, context_switch_cost=5),
        ):
            self.assertEqual(compute_priority(task, NOW), 0.5)

    def test_deterministic(self):
        task = make_task(due_date=self.due, estimated_minutes=120, impact=4)
        scores = {compute_priority(task, NOW) for _ in range(5)}
        self.assertEqual(len(scores), 1)

    def test_baseline_formula(self):
        """A task due in 36 hours with default inputs scores (24/36)/4."""
        task = make_task(due_date=date(2025, 3, 12), due_time=time(0, 0))
        self.assertAlmostEqual(self.calculator.compute(task, NOW), (24 / 36) / 4, places=6)

    def test_overdue_saturates(self):
        """Overdue tasks hit the maximum time pressure instead of diverging."""
        task = make_task(due_date=date(2025, 3, 1))
        self.assertAlmostEqual(compute_priority(task, NOW), 0.5)

        long_overdue = make_task(due_date=date(2024, 1, 1))
        self.assertEqual(compute_priority(task, NOW), compute_priority(long_overdue, NOW))

    def test_far_future_floor(self):
        task = make_task(due_date=date(2026, 3, 10))
        self.assertAlmostEqual(compute_priority(task, NOW), 0.1 / 4)

    def test_maximum_score_bounded_by_clamps(self):
        task = make_task(
            due_date=date(2025, 3, 1),
            estimated_minutes=600,
            impact=5,
            context_switch_cost=1,
        )
        self.assertAlmostEqual(compute_priority(task, NOW), 2.0 * 2.0 * (5 / 3) * 2.0 / 4)

    def test_non_increasing_in_context_switch_cost(self):
        scores = [
            compute_priority(make_task(due_date=self.due, context_switch_cost=cost), NOW)
            for cost in range(1, 6)
        ]
        for higher_cost, lower_cost in zip(scores[1:], scores):
            self.assertLessEqual(higher_cost, lower_cost)

    def test_non_decreasing_in_impact(self):
        scores = [
            compute_priority(make_task(due_date=self.due, impact=impact), NOW)
            for impact in range(1, 6)
        ]
        for higher_impact, lower_impact in zip(scores[1:], scores):
            self.assertGreaterEqual(higher_impact, lower_impact)

    def test_sooner_is_higher(self):
        soon = make_task(due_date=date(2025, 3, 11))
        later = make_task(due_date=date(2025, 3, 20))
        self.assertGreater(compute_priority(soon, NOW), compute_priority(later, NOW))

    def test_score_never_negative(self):
        for days in range(-30, 400, 7):
            task = make_task(due_date=NOW.date() + timedelta(days=days), estimated_minutes=1)
            self.assertGreaterEqual(compute_priority(task, NOW), 0)

    def test_factors_none_without_due_date(self):
        self.assertIsNone(self.calculator.factors(make_task(), NOW))

    def test_failure_logged_and_neutral(self):
        task = make_task(due_date=self.due)
        with mock.patch.object(TaskRecord, 'hours_until_due', side_effect=RuntimeError('boom')):
            with self.assertLogs('assignments.scoring', level='WARNING'):
                self.assertEqual(self.calculator.compute(task, NOW), 0.5)

    def test_rank_highest_first(self):
        tasks = [
            make_task(title='later', due_date=date(2025, 3, 30)),
            make_task(title='undated'),
            make_task(title='overdue', due_date=date(2025, 3, 2), estimated_minutes=120),
        ]
        ranked = rank_tasks(tasks, NOW)
        self.assertEqual([t.title for t in ranked], ['overdue', 'undated', 'later'])
        self.assertTrue(all(t.priority_score is not None for t in ranked))


class TaskTextParserTests(SimpleTestCase):
    """Tests for natural-language task extraction."""

    def setUp(self):
        self.now = datetime(2025, 3, 10, 9, 0)
        self.today = self.now.date()

    def test_empty_text(self):
        self.assertEqual(parse_tasks_from_text('', self.now), [])

    def test_short_fragment(self):
        self.assertEqual(parse_tasks_from_text('ok', self.now), [])

    def test_chemistry_lab_report(self):
        """Report comes before lab in the effort table, so the report rule wins."""
        tasks = parse_tasks_from_text('I need to finish my chemistry lab report due tomorrow', self.now)

        self.assertEqual(len(tasks), 1)
        task = tasks[0]
        self.assertEqual(task.title, 'Finish my chemistry lab report due tomorrow')
        self.assertEqual(task.course, 'Chemistry')
        self.assertEqual(task.status, TaskStatus.URGENT)
        self.assertEqual(task.due_date, self.today + timedelta(days=1))
        self.assertEqual(task.estimated_minutes, 240)
        self.assertEqual(task.impact, 5)
        self.assertEqual(task.context_switch_cost, 4)
        self.assertEqual(task.source, TaskSource.PARSED)
        self.assertIsNotNone(task.priority_score)

    def test_multiple_segments_in_order(self):
        text = (
            "Quick reading of chapter 4 for history next week. "
            "Study for the physics test this week!\n"
            "ok\n"
            "We went to the park yesterday and it was nice."
        )
        tasks = parse_tasks_from_text(text, self.now)

        self.assertEqual(len(tasks), 2)
        reading, physics = tasks

        self.assertEqual(reading.course, 'History')
        self.assertEqual(reading.due_date, self.today + timedelta(days=7))
        self.assertEqual(reading.status, TaskStatus.PENDING)
        self.assertEqual(
            (reading.estimated_minutes, reading.impact, reading.context_switch_cost),
            (30, 2, 1)
        )

        self.assertEqual(physics.course, 'Physics')
        self.assertEqual(physics.due_date, self.today + timedelta(days=3))
        self.assertEqual(
            (physics.estimated_minutes, physics.impact, physics.context_switch_cost),
            (60, 4, 2)
        )

    def test_default_due_date_and_effort(self):
        tasks = parse_tasks_from_text('Complete the algebra worksheet', self.now)

        self.assertEqual(len(tasks), 1)
        task = tasks[0]
        self.assertEqual(task.course, 'Algebra')
        self.assertEqual(task.due_date, self.today + timedelta(days=5))
        self.assertEqual(task.status, TaskStatus.PENDING)
        self.assertEqual((task.estimated_minutes, task.impact, task.context_switch_cost), (90, 3, 2))

    def test_today_is_urgent(self):
        tasks = parse_tasks_from_text('I have a history exam today', self.now)

        self.assertEqual(tasks[0].title, 'A history exam today')
        self.assertEqual(tasks[0].due_date, self.today)
        self.assertEqual(tasks[0].status, TaskStatus.URGENT)

    def test_unknown_subject_is_general(self):
        tasks = parse_tasks_from_text('Submit the project proposal', self.now)
        self.assertEqual(tasks[0].course, 'General')
        self.assertEqual(tasks[0].estimated_minutes, 300)

    def test_segments_without_keywords_dropped(self):
        self.assertEqual(parse_tasks_from_text('Read the latest news about the weather', self.now), [])

    def test_ids_unique(self):
        text = 'Write the biology essay. Prepare for the math quiz. Finish the english reading'
        tasks = parse_tasks_from_text(text, self.now)

        self.assertEqual(len(tasks), 3)
        self.assertEqual(len({t.id for t in tasks}), 3)
        self.assertTrue(all(t.id.startswith('parsed-') for t in tasks))

    def test_no_deduplication(self):
        text = 'Finish the physics homework. Finish the physics homework.'
        self.assertEqual(len(parse_tasks_from_text(text, self.now)), 2)

    def test_internal_error_returns_empty(self):
        parser = TaskTextParser()
        with mock.patch.object(parser, 'build_task', side_effect=RuntimeError('boom')):
            with self.assertLogs('assignments.parsing', level='ERROR'):
                self.assertEqual(parser.parse('Finish the physics homework', self.now), [])


class RecommendationTests(SimpleTestCase):
    """Tests for the recommendation generator."""

    def tasks(self, *specs):
        return [make_task(**spec).refresh(NOW) for spec in specs]

    def test_empty(self):
        self.assertEqual(get_recommendations([], NOW), [ALL_CAUGHT_UP])

    def test_quick_wins_counted(self):
        tasks = self.tasks(
            {'estimated_minutes': 30, 'course': 'Math'},
            {'estimated_minutes': 60, 'course': 'Math'},
            {'estimated_minutes': 90, 'course': 'Math'},
            {'estimated_minutes': 120, 'course': 'Math'},
            {'estimated_minutes': 150, 'course': 'Math'},
        )
        messages = get_recommendations(tasks, NOW)

        self.assertTrue(any('2 quick win' in m for m in messages))
        self.assertIn('Total workload: 8 hour(s)', messages[-1])
        self.assertIn('2 hour(s) per day', messages[-1])

    def test_completed_tasks_ignored(self):
        tasks = self.tasks(
            {'estimated_minutes': 30, 'completed': True},
            {'estimated_minutes': 120},
        )
        messages = get_recommendations(tasks, NOW)

        self.assertFalse(any('quick win' in m for m in messages))
        self.assertTrue(any('Total workload: 2 hour(s)' in m for m in messages))

    def test_urgent_and_high_impact(self):
        tasks = self.tasks(
            {'due_date': date(2025, 3, 10), 'estimated_minutes': 120, 'impact': 5},
            {'due_date': date(2025, 4, 10), 'estimated_minutes': 120, 'impact': 4},
            {'due_date': date(2025, 4, 10), 'estimated_minutes': 120, 'impact': 2},
        )
        messages = get_recommendations(tasks, NOW)

        self.assertTrue(any('1 task(s) due within 24 hours' in m for m in messages))
        self.assertTrue(any('2 high-impact' in m for m in messages))

    def test_message_order(self):
        tasks = self.tasks(
            {'due_date': date(2025, 3, 10), 'estimated_minutes': 30, 'impact': 5, 'course': 'A'},
            {'course': 'B'},
            {'course': 'C'},
            {'course': 'D'},
        )
        messages = get_recommendations(tasks, NOW)

        self.assertEqual(len(messages), 5)
        self.assertIn('quick win', messages[0])
        self.assertIn('urgent attention', messages[1])
        self.assertIn('high-impact', messages[2])
        self.assertIn('Total workload', messages[3])
        self.assertIn('context switching', messages[4])

    def test_context_switching_above_three_courses(self):
        four = self.tasks(*({'course': c} for c in ('Math', 'Biology', 'History', 'English')))
        three = self.tasks(*({'course': c} for c in ('Math', 'Biology', 'History')))

        self.assertTrue(any('context switching' in m for m in get_recommendations(four, NOW)))
        self.assertFalse(any('context switching' in m for m in get_recommendations(three, NOW)))

    def test_internal_error_returns_empty(self):
        broken = [mock.Mock(completed=False, estimated_minutes='oops')]
        with self.assertLogs('assignments.recommendations', level='ERROR'):
            self.assertEqual(get_recommendations(broken, NOW), [])


class ClassroomMappingTests(SimpleTestCase):
    """Tests for mapping classroom coursework into tasks."""

    def test_full_coursework(self):
        work = {
            'id': 'cw-1',
            'title': 'Lab 2',
            'description': 'Titration',
            'dueDate': {'year': 2025, 'month': 3, 'day': 12},
            'dueTime': {'hours': 17, 'minutes': 30},
            'alternateLink': 'https://classroom.example/cw-1',
        }
        task = task_from_coursework(work, 'Chemistry', NOW)

        self.assertEqual(task.id, 'cw-1')
        self.assertEqual(task.course, 'Chemistry')
        self.assertEqual(task.due_at, datetime(2025, 3, 12, 17, 30))
        self.assertEqual(task.link, 'https://classroom.example/cw-1')
        self.assertEqual(task.source, TaskSource.CLASSROOM)
        self.assertEqual(task.status, TaskStatus.URGENT)
        self.assertEqual(task.estimated_minutes, 60)

    def test_defaults(self):
        task = task_from_coursework({'id': 'cw-2', 'title': 'Essay'}, 'English', NOW)

        self.assertIsNone(task.due_date)
        self.assertEqual(task.description, NO_DESCRIPTION)
        self.assertEqual(task.priority_score, 0.5)
        self.assertEqual(task.status, TaskStatus.PENDING)

    def test_missing_due_time_is_end_of_day(self):
        work = {'id': 'cw-3', 'title': 'Quiz', 'dueDate': {'year': 2025, 'month': 3, 'day': 20}}
        task = task_from_coursework(work, 'Math', NOW)
        self.assertEqual(task.due_time, time(23, 59))

    def test_malformed_items_skipped(self):
        courses = [
            {'name': 'Biology', 'courseWork': [
                {'id': 'ok', 'title': 'Reading'},
                {'title': 'No id'},
            ]},
            {'name': 'Empty course'},
        ]
        with self.assertLogs('assignments.classroom', level='WARNING'):
            tasks = tasks_from_courses(courses, NOW)

        self.assertEqual([t.id for t in tasks], ['ok'])

    def test_sort_by_due_date_undated_last(self):
        tasks = [
            make_task(title='undated'),
            make_task(title='late', due_date=date(2025, 4, 1)),
            make_task(title='early', due_date=date(2025, 3, 11)),
        ]
        self.assertEqual([t.title for t in sort_by_due_date(tasks)], ['early', 'late', 'undated'])


class DashboardTests(SimpleTestCase):
    """Tests for the store-backed dashboard."""

    def setUp(self):
        self.store = MemoryTaskStore()
        self.dashboard = Dashboard(self.store)

    def test_add_and_list_manual_tasks(self):
        self.dashboard.add_manual_tasks([make_task(id='m1', title='Essay')])
        self.dashboard.add_manual_tasks([make_task(id='m2', title='Quiz')])

        self.assertEqual([t.id for t in self.dashboard.manual_tasks()], ['m1', 'm2'])
        self.assertEqual(len(self.store.load(MANUAL_TASKS_KEY)), 2)

    def test_delete_manual_task(self):
        self.dashboard.add_manual_tasks([make_task(id='m1')])
        self.dashboard.delete_task('m1')

        self.assertEqual(self.dashboard.manual_tasks(), [])
        self.assertEqual(self.dashboard.deleted_ids(), [])

    def test_hidden_fetched_tasks_survive_new_instance(self):
        self.dashboard.delete_task('cw-1')
        self.dashboard.delete_task('cw-1')

        fresh = Dashboard(self.store)
        fetched = [make_task(id='cw-1'), make_task(id='cw-2')]
        self.assertEqual([t.id for t in fresh.visible_tasks(fetched, NOW)], ['cw-2'])
        self.assertEqual(self.store.load(DELETED_TASK_IDS_KEY), ['cw-1'])

    def test_visible_tasks_ranked(self):
        self.dashboard.add_manual_tasks([make_task(id='m1', due_date=date(2025, 3, 10), estimated_minutes=120)])
        fetched = [make_task(id='cw-1')]

        visible = self.dashboard.visible_tasks(fetched, NOW)
        self.assertEqual([t.id for t in visible], ['m1', 'cw-1'])

    def test_complete_task(self):
        self.dashboard.add_manual_tasks([make_task(id='m1', due_date=date(2025, 3, 1))])
        task = self.dashboard.complete_task('m1', NOW)

        self.assertEqual(task.status, TaskStatus.COMPLETED)
        self.assertTrue(self.dashboard.manual_tasks()[0].completed)

    def test_complete_unknown_task(self):
        with self.assertRaises(TaskNotFound):
            self.dashboard.complete_task('missing', NOW)

    def test_reset(self):
        self.dashboard.add_manual_tasks([make_task(id='m1')])
        self.dashboard.delete_task('cw-1')
        self.dashboard.reset()

        self.assertEqual(self.dashboard.manual_tasks(), [])
        self.assertEqual(self.dashboard.deleted_ids(), [])

    def test_manual_task_limit(self):
        dashboard = Dashboard(self.store, max_manual_tasks=2)
        dashboard.add_manual_tasks([make_task(id='m1'), make_task(id='m2')])

        with self.assertRaises(DashboardFull):
            dashboard.add_manual_tasks([make_task(id='m3')])
        self.assertEqual([t.id for t in dashboard.manual_tasks()], ['m1', 'm2'])

    def test_hidden_task_limit(self):
        dashboard = Dashboard(self.store, max_hidden_tasks=1)
        dashboard.delete_task('cw-1')
        dashboard.delete_task('cw-1')

        with self.assertRaises(DashboardFull):
            dashboard.delete_task('cw-2')
        self.assertEqual(dashboard.deleted_ids(), ['cw-1'])

    def test_memory_store_copies_values(self):
        data = ['a']
        self.store.save('key', data)
        data.append('b')
        self.assertEqual(self.store.load('key'), ['a'])


class APIEndpointTests(APITestCase):
    """Tests for the API endpoints."""

    def setUp(self):
        cache.clear()
        self.today = timezone.localdate()

    def post(self, url, data):
        return self.client.post(url, data=json.dumps(data), content_type='application/json')

    def test_score_endpoint_success(self):
        """POST /api/tasks/score/ should return tasks sorted highest first."""
        data = {
            'tasks': [
                {'id': 'later', 'title': 'History essay', 'course': 'History',
                 'due_date': (self.today + timedelta(days=20)).isoformat()},
                {'id': 'soon', 'title': 'Math quiz', 'course': 'Math',
                 'due_date': (self.today + timedelta(days=1)).isoformat(),
                 'estimated_minutes': 45, 'impact': 4},
            ]
        }
        response = self.post('/api/tasks/score/', data)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['tasks'][0]['id'], 'soon')
        self.assertEqual(response.data['tasks'][0]['status'], 'urgent')
        self.assertEqual(response.data['tasks'][0]['due_label'], 'Due tomorrow')
        self.assertIn('factors', response.data['tasks'][0])
        self.assertTrue(response.data['recommendations'])

    def test_score_endpoint_defaults(self):
        response = self.post('/api/tasks/score/', {'tasks': [{'title': 'Open reading'}]})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        task = response.data['tasks'][0]
        self.assertEqual(task['priority_score'], 0.5)
        self.assertEqual(task['estimated_minutes'], 60)
        self.assertIsNone(task['factors'])

    def test_score_endpoint_invalid_task(self):
        data = {'tasks': [{'title': '', 'impact': 9}]}
        response = self.post('/api/tasks/score/', data)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error_code'], 'ERR_INVALID_INPUT')

    def test_parse_endpoint(self):
        data = {'text': 'I need to finish my chemistry lab report due tomorrow'}
        response = self.post('/api/tasks/parse/', data)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertFalse(response.data['saved'])
        task = response.data['tasks'][0]
        self.assertEqual(task['course'], 'Chemistry')
        self.assertEqual(task['status'], 'urgent')
        self.assertEqual(task['due_date'], (self.today + timedelta(days=1)).isoformat())

    def test_parse_endpoint_no_tasks(self):
        response = self.post('/api/tasks/parse/', {'text': 'What a lovely afternoon outside'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 0)

    def test_parse_endpoint_empty_text(self):
        response = self.post('/api/tasks/parse/', {'text': '   '})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], 'ERR_EMPTY_TEXT')

    @override_settings(STUDY_DASHBOARD={'MAX_TEXT_LENGTH': 20})
    def test_parse_endpoint_text_too_long(self):
        response = self.post('/api/tasks/parse/', {'text': 'Finish the physics homework today'})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], 'ERR_TEXT_TOO_LONG')

    def test_recommendations_endpoint_empty(self):
        response = self.post('/api/tasks/recommendations/', {'tasks': []})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['recommendations'], [ALL_CAUGHT_UP])

    def test_saved_tasks_on_dashboard(self):
        """Parsed tasks saved to the session show up, complete and delete."""
        response = self.post('/api/tasks/parse/', {
            'text': 'Finish the physics homework. Prepare for the biology quiz next week',
            'save': True,
        })
        self.assertTrue(response.data['saved'])

        response = self.client.get('/api/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        task_id = response.data['tasks'][0]['id']

        response = self.client.post(f'/api/dashboard/tasks/{task_id}/complete/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['task']['status'], 'completed')

        response = self.client.delete(f'/api/dashboard/tasks/{task_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get('/api/dashboard/')
        self.assertEqual(response.data['count'], 1)

        self.client.post('/api/dashboard/reset/')
        response = self.client.get('/api/dashboard/')
        self.assertEqual(response.data['count'], 0)
        self.assertEqual(response.data['recommendations'], [ALL_CAUGHT_UP])

    def test_complete_unknown_task(self):
        response = self.client.post('/api/dashboard/tasks/nope/complete/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error_code'], 'ERR_TASK_NOT_FOUND')

    def test_classroom_import_hides_deleted(self):
        due = self.today + timedelta(days=4)
        data = {
            'courses': [
                {'name': 'Biology', 'courseWork': [
                    {'id': 'cw-1', 'title': 'Lab report',
                     'dueDate': {'year': due.year, 'month': due.month, 'day': due.day}},
                    {'id': 'cw-2', 'title': 'Chapter 3 reading'},
                ]},
            ]
        }
        response = self.post('/api/classroom/import/', data)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['imported'], 2)
        self.assertEqual({t['id'] for t in response.data['tasks']}, {'cw-1', 'cw-2'})

        self.client.delete('/api/dashboard/tasks/cw-1/')
        response = self.post('/api/classroom/import/', data)
        self.assertEqual([t['id'] for t in response.data['tasks']], ['cw-2'])

    def test_classroom_import_invalid(self):
        response = self.post('/api/classroom/import/', {'courses': [{'courseWork': []}]})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_saved_tasks_stay_server_side(self):
        """The session cookie carries only a key, however many tasks are saved."""
        text = '. '.join(f'Finish the physics homework set {i}' for i in range(20))
        for _ in range(6):
            response = self.post('/api/tasks/parse/', {'text': text, 'save': True})
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['count'], 20)

        cookie = self.client.cookies[settings.SESSION_COOKIE_NAME]
        self.assertLess(len(cookie.value), 100)
        self.assertEqual(cookie['samesite'], 'Strict')
        self.assertEqual(self.client.get('/api/dashboard/').data['count'], 120)

    @override_settings(STUDY_DASHBOARD={'MAX_TEXT_LENGTH': 5000, 'MAX_MANUAL_TASKS': 2})
    def test_saved_tasks_limit(self):
        text = 'Finish the physics homework. Prepare for the biology quiz next week'
        response = self.post('/api/tasks/parse/', {'text': text, 'save': True})
        self.assertTrue(response.data['saved'])

        response = self.post('/api/tasks/parse/', {'text': text, 'save': True})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], 'ERR_DASHBOARD_FULL')
        self.assertEqual(self.client.get('/api/dashboard/').data['count'], 2)

    @override_settings(STUDY_DASHBOARD={'MAX_TEXT_LENGTH': 5000, 'MAX_HIDDEN_TASKS': 1})
    def test_hidden_tasks_limit(self):
        self.assertEqual(self.client.delete('/api/dashboard/tasks/cw-1/').status_code, status.HTTP_200_OK)

        response = self.client.delete('/api/dashboard/tasks/cw-2/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error_code'], 'ERR_DASHBOARD_FULL')

    @override_settings(TIME_ZONE='Asia/Tokyo')
    def test_dates_follow_configured_time_zone(self):
        """11 PM UTC on March 10 is already March 11 in Tokyo."""
        utc_now = datetime(2025, 3, 10, 23, 0, tzinfo=dt_timezone.utc)
        with mock.patch('django.utils.timezone.now', return_value=utc_now):
            response = self.post('/api/tasks/parse/', {'text': 'Finish the physics homework today'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['tasks'][0]['due_date'], '2025-03-11')
        self.assertEqual(response.data['tasks'][0]['due_label'], 'Due today')

    def test_dashboard_endpoints_throttled(self):
        for view in (views.dashboard, views.delete_task, views.complete_task, views.reset_dashboard):
            self.assertIn(DashboardRateThrottle, view.cls.throttle_classes)

        with mock.patch.object(DashboardRateThrottle, 'rate', '1/min'):
            self.assertEqual(self.client.post('/api/dashboard/reset/').status_code, status.HTTP_200_OK)
            response = self.client.post('/api/dashboard/reset/')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)

    def test_api_info_endpoint(self):
        response = self.client.get('/api/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('name', response.data)
        self.assertIn('endpoints', response.data)
        self.assertIn('error_codes', response.data)
