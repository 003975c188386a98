import datetime

import pytest
from django.db import DatabaseError
from django.test import override_settings
from django.utils import timezone

from care.models import Task, TaskList
from care.services import tasks as task_service
from care.services.tasks import (
    CascadePolicy,
    PrerequisiteIncomplete,
    PrerequisiteLookupFailed,
    complete_task,
    subtask_ids,
    undo_complete,
)

pytestmark = pytest.mark.django_db

NOW = timezone.make_aware(datetime.datetime(2024, 5, 1, 9, 30))


def _reload(*tasks):
    return [Task.objects.get(pk=t.pk) for t in tasks]


def test_incomplete_prerequisite_blocks_completion(make_task):
    prerequisite = make_task('Task 5')
    task = make_task('Task 10', prerequisite_task=prerequisite)

    with pytest.raises(PrerequisiteIncomplete) as exc:
        complete_task(task, now=NOW)

    assert str(exc.value) == 'complete the prerequisite first'
    assert exc.value.prerequisite_id == prerequisite.id
    task, prerequisite = _reload(task, prerequisite)
    assert task.is_done is False
    assert task.finish_date is None
    assert prerequisite.is_done is False


def test_blocked_completion_leaves_subtasks_untouched(make_task):
    prerequisite = make_task('blocker')
    parent = make_task('parent', prerequisite_task=prerequisite)
    child = make_task('child', parent_task=parent)

    with pytest.raises(PrerequisiteIncomplete):
        complete_task(parent, now=NOW)

    (child,) = _reload(child)
    assert child.is_done is False


def test_done_prerequisite_allows_completion(make_task):
    prerequisite = make_task('Task 5', is_done=True, finish_date=NOW)
    task = make_task('Task 10', prerequisite_task=prerequisite)

    result = complete_task(task, now=NOW)

    (task,) = _reload(task)
    assert task.is_done is True
    assert task.finish_date == NOW
    assert result.finish_date == NOW


def test_children_completed_with_parent(make_task):
    parent = make_task('Task 20')
    child_a = make_task('Task 21', parent_task=parent)
    child_b = make_task('Task 22', parent_task=parent)

    result = complete_task(parent, now=NOW)

    parent, child_a, child_b = _reload(parent, child_a, child_b)
    assert child_a.is_done and child_b.is_done
    assert parent.is_done is True
    assert parent.finish_date == NOW
    assert child_a.finish_date == NOW
    assert sorted(result.cascaded_ids) == sorted([child_a.id, child_b.id])


def test_already_done_child_keeps_its_finish_date(make_task):
    earlier = NOW - datetime.timedelta(days=2)
    parent = make_task('parent')
    done_child = make_task('done child', parent_task=parent, is_done=True, finish_date=earlier)

    result = complete_task(parent, now=NOW)

    (done_child,) = _reload(done_child)
    assert done_child.finish_date == earlier
    assert result.cascaded_ids == []


def test_direct_policy_skips_grandchildren(make_task):
    parent = make_task('parent')
    child = make_task('child', parent_task=parent)
    grandchild = make_task('grandchild', parent_task=child)

    complete_task(parent, policy=CascadePolicy.DIRECT, now=NOW)

    child, grandchild = _reload(child, grandchild)
    assert child.is_done is True
    assert grandchild.is_done is False


def test_recursive_policy_reaches_every_descendant(make_task):
    parent = make_task('parent')
    child = make_task('child', parent_task=parent)
    grandchild = make_task('grandchild', parent_task=child)
    great = make_task('great-grandchild', parent_task=grandchild)

    result = complete_task(parent, policy='recursive', now=NOW)

    child, grandchild, great = _reload(child, grandchild, great)
    assert child.is_done and grandchild.is_done and great.is_done
    assert set(result.cascaded_ids) == {child.id, grandchild.id, great.id}


def test_recursive_walk_terminates_on_cycles(make_task):
    a = make_task('a')
    b = make_task('b', parent_task=a)
    Task.objects.filter(pk=a.pk).update(parent_task=b)

    assert subtask_ids(a, CascadePolicy.RECURSIVE) == [b.id]


@override_settings(TASK_CASCADE_POLICY='recursive')
def test_default_policy_comes_from_settings(make_task):
    parent = make_task('parent')
    child = make_task('child', parent_task=parent)
    grandchild = make_task('grandchild', parent_task=child)

    complete_task(parent, now=NOW)

    (grandchild,) = _reload(grandchild)
    assert grandchild.is_done is True


def test_failure_after_cascade_rolls_back_children(make_task, monkeypatch):
    parent = make_task('parent')
    child = make_task('child', parent_task=parent)

    def boom(task_list):
        raise RuntimeError('counter update failed')

    monkeypatch.setattr(task_service, 'refresh_counts', boom)
    with pytest.raises(RuntimeError):
        complete_task(parent, now=NOW)

    parent, child = _reload(parent, child)
    assert parent.is_done is False
    assert child.is_done is False


def test_unreadable_prerequisite_reports_lookup_failure(make_task, monkeypatch):
    prerequisite = make_task('unreadable')
    task = make_task('dependent', prerequisite_task=prerequisite)
    original_filter = Task.objects.filter

    def flaky_filter(*args, **kwargs):
        if kwargs.get('id') == prerequisite.id:
            raise DatabaseError('connection lost')
        return original_filter(*args, **kwargs)

    monkeypatch.setattr(Task.objects, 'filter', flaky_filter)
    with pytest.raises(PrerequisiteLookupFailed) as exc:
        complete_task(task, now=NOW)
    monkeypatch.undo()

    assert exc.value.status_code == 424
    (task,) = _reload(task)
    assert task.is_done is False


def test_undo_resets_parent_but_not_children(make_task):
    parent = make_task('parent')
    child = make_task('child', parent_task=parent)
    complete_task(parent, now=NOW)

    undo_complete(parent)

    parent, child = _reload(parent, child)
    assert parent.is_done is False
    assert parent.finish_date is None
    assert child.is_done is True


def test_counts_follow_completion(make_task, task_list):
    parent = make_task('parent')
    make_task('child', parent_task=parent)
    make_task('other')

    complete_task(parent, now=NOW)

    tl = TaskList.objects.get(pk=task_list.pk)
    assert tl.completed_tasks_count == 2
    assert tl.uncompleted_tasks_count == 1


def test_completion_is_idempotent(make_task):
    task = make_task('twice')
    complete_task(task, now=NOW)
    later = NOW + datetime.timedelta(minutes=5)

    complete_task(task, now=later)

    (task,) = _reload(task)
    assert task.is_done is True
    assert task.finish_date == later
