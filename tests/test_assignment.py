import threading
from datetime import date, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app import assignment, repository, task_service
from app.errors import (
    DependencyNotCompletedError,
    NoEligibleMembersError,
    NotFoundError,
    PersistenceError,
)
from app.models import Member, MemberSkill, Skill, Task
from schemas.tasks import TaskCreate


def _auto_task(project, **fields):
    fields.setdefault("title", "Implement endpoint")
    fields.setdefault("task_type", "development")
    fields.setdefault("estimated_hours", 8)
    fields.setdefault("complexity", 5)
    return TaskCreate(project_id=project.project_id, auto_assign=True, **fields)


def _transient_member(level, proficiency, skill="JavaScript", **fields):
    member = Member(username=f"{level}-{proficiency}", experience_level=level, **fields)
    member.skills.append(MemberSkill(skill=Skill(name=skill), proficiency_level=proficiency))
    return member


class TestSelection:
    def test_higher_proficiency_wins(self, db, roster, fresh_workload):
        m1 = roster.member("m1", skills={"JS": 4})
        m2 = roster.member("m2", skills={"JS": 2})
        project = roster.project(members=[m1, m2])

        result = task_service.create_task(db, _auto_task(project))

        assert result.member.member_id == m1.member_id
        assert result.task.assigned_to == m1.member_id
        assert result.task.auto_assigned is True
        assert fresh_workload(m1.member_id) == 8
        assert fresh_workload(m2.member_id) == 0

    def test_prefers_less_loaded_member(self, db, roster):
        busy = roster.member("busy", skills={"JavaScript": 4}, workload=40.0)
        idle = roster.member("idle", skills={"JavaScript": 4}, workload=0.0)
        project = roster.project(members=[busy, idle])

        result = task_service.create_task(db, _auto_task(project))

        assert result.member.username == "idle"

    def test_ties_break_on_member_id(self, db, roster):
        first = roster.member("first", skills={"JavaScript": 3})
        second = roster.member("second", skills={"JavaScript": 3})
        project = roster.project(members=[second, first])
        task = roster.task(project, task_type="development")

        ranking = assignment.find_best_member(db, task, project.project_id)

        assert ranking[0].score == ranking[1].score
        assert ranking[0].member.member_id == first.member_id

    def test_repeated_ranking_is_identical(self, db, roster):
        members = [
            roster.member("ana", skills={"React": 4, "Node.js": 3}, experience_level="senior"),
            roster.member("ben", skills={"JavaScript": 5}, performance_rating=4),
            roster.member("cy", skills={"Figma": 5}, experience_level="junior"),
        ]
        project = roster.project(members=members)
        task = roster.task(project, task_type="feature", complexity=6)

        first = assignment.find_best_member(db, task, project.project_id)
        second = assignment.find_best_member(db, task, project.project_id)

        assert [(c.member.member_id, c.score) for c in first] == [
            (c.member.member_id, c.score) for c in second
        ]

    def test_skill_filter_falls_back_when_nobody_qualifies(self, db, roster):
        designer = roster.member("designer", skills={"Figma": 5})
        writer = roster.member("writer", skills={"Markdown": 4})
        project = roster.project(members=[designer, writer])

        result = task_service.create_task(db, _auto_task(project, task_type="JAVA"))

        assert result.member is not None

    def test_overloaded_roster_still_gets_assignment(self, db, roster):
        tired = roster.member("tired", skills={"JavaScript": 4}, workload=60.0, availability=10)
        project = roster.project(members=[tired])

        result = task_service.create_task(db, _auto_task(project))

        assert result.member.member_id == tired.member_id

    def test_explicit_requirement_prefers_member_above_minimum(self, db, roster):
        roster.skill("Docker")
        ops = roster.member("ops", skills={"Docker": 5})
        dev = roster.member("dev", skills={"Docker": 2})
        project = roster.project(members=[ops, dev])

        result = task_service.create_task(db, _auto_task(
            project,
            task_type="other",
            required_skills=[{"skill_name": "Docker", "minimum_level": 3}],
        ))

        assert result.member.username == "ops"


class TestScoring:
    def test_low_proficiency_scores_lower_on_complex_tasks(self):
        task = Task(title="Hard", task_type="development", complexity=9, estimated_hours=8)
        novice = _transient_member("mid-level", 2)
        expert = _transient_member("mid-level", 5)

        assert assignment.evaluate_complexity_fit(novice, task) < assignment.evaluate_complexity_fit(expert, task)

    def test_intern_penalised_on_complex_task(self):
        task = Task(title="Hard", task_type="development", complexity=9, estimated_hours=8)
        intern = _transient_member("intern", 4)
        senior = _transient_member("senior", 4)

        intern_score = assignment.calculate_member_score(intern, task)
        senior_score = assignment.calculate_member_score(senior, task)

        assert "experience_penalty" in intern_score.breakdown
        assert intern_score.score < senior_score.score

    def test_workload_component_decreases_with_load(self):
        light = Member(username="light", workload=0.0, availability=100)
        heavy = Member(username="heavy", workload=30.0, availability=100)

        assert assignment.evaluate_workload(light) == 100
        assert assignment.evaluate_workload(heavy) < assignment.evaluate_workload(light)

    def test_member_without_skills_scores_low(self):
        task = Task(title="Build", task_type="development", complexity=5, estimated_hours=8)
        empty = Member(username="empty")

        assert assignment.evaluate_skills(empty, task) == 30
        assert not assignment.has_required_skills_for_task_type(empty, task)

    def test_urgent_task_rewards_strong_performers(self):
        today = date(2026, 1, 10)
        task = Task(title="Hotfix", task_type="bug-fix", complexity=4, estimated_hours=2,
                    due_date=today + timedelta(days=1))
        star = _transient_member("mid-level", 4, skill="Debugging", performance_rating=5)

        scored = assignment.calculate_member_score(star, task, today=today)

        assert scored.breakdown["urgency_bonus"] == assignment.URGENT_PERFORMANCE_BONUS

    def test_score_is_bounded(self):
        task = Task(title="Docs", task_type="documentation", complexity=1, estimated_hours=1)
        member = _transient_member("lead", 5, skill="Documentation", performance_rating=5)

        scored = assignment.calculate_member_score(member, task)

        assert 0 <= scored.score <= 100

    def test_defaults_apply_to_missing_estimate_and_complexity(self):
        task = Task(title="Bare")

        assert assignment.task_hours(task) == 8
        assert assignment.task_complexity(task) == 5


class TestErrors:
    def test_missing_project(self, db):
        task = Task(title="Orphan", estimated_hours=4, complexity=3)

        with pytest.raises(NotFoundError):
            assignment.auto_assign_task(db, task, 999)

    def test_empty_roster_creates_nothing(self, db, roster):
        project = roster.project(members=[])

        with pytest.raises(NoEligibleMembersError):
            task_service.create_task(db, _auto_task(project))

        assert db.scalar(select(func.count(Task.task_id))) == 0

    def test_roster_of_admins_only(self, db, roster):
        lead = roster.member("lead", skills={"JavaScript": 5})
        project = roster.project(admins=[lead])

        with pytest.raises(NoEligibleMembersError):
            task_service.create_task(db, _auto_task(project))

    def test_team_leader_account_is_never_picked(self, db, roster):
        lead = roster.member("lead", skills={"JavaScript": 5}, role="TeamLeader")
        dev = roster.member("dev", skills={"JavaScript": 3})
        project = roster.project(members=[lead, dev])

        result = task_service.create_task(db, _auto_task(project))

        assert result.member.member_id == dev.member_id

    def test_roster_of_leaders_and_inactive_members(self, db, roster):
        lead = roster.member("lead", skills={"JavaScript": 5}, role="TeamLeader")
        gone = roster.member("gone", skills={"JavaScript": 5}, is_active=False)
        project = roster.project(members=[lead, gone])

        with pytest.raises(NoEligibleMembersError):
            task_service.create_task(db, _auto_task(project))

    def test_open_dependency_blocks_assignment(self, db, roster, fresh_workload):
        dev = roster.member("dev", skills={"JavaScript": 4})
        project = roster.project(members=[dev])
        blocker = roster.task(project, title="Schema migration")

        with pytest.raises(DependencyNotCompletedError):
            task_service.create_task(db, _auto_task(project, dependencies=[blocker.task_id]))

        task_service.update_task_status(db, blocker.task_id, "completed")
        result = task_service.create_task(db, _auto_task(project, dependencies=[blocker.task_id]))

        assert result.member.member_id == dev.member_id
        assert fresh_workload(dev.member_id) == 8


class TestWorkload:
    def test_repeated_assignments_accumulate(self, db, roster, fresh_workload):
        solo = roster.member("solo", skills={"JavaScript": 4})
        project = roster.project(members=[solo])

        for hours in (3, 5, 8):
            task_service.create_task(db, _auto_task(project, title=f"Task {hours}h", estimated_hours=hours))

        assert fresh_workload(solo.member_id) == 16

    def test_failed_workload_write_leaves_task_unassigned(self, db, roster, session_factory, monkeypatch):
        solo = roster.member("solo", skills={"JavaScript": 4})
        project = roster.project(members=[solo])
        task = roster.task(project, task_type="development")

        def broken_increment(*args, **kwargs):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(repository, "increment_workload", broken_increment)

        with pytest.raises(PersistenceError):
            task_service.auto_assign_existing_task(db, task.task_id)

        check = session_factory()
        try:
            stored = check.get(Task, task.task_id)
            assert stored.assigned_to is None
            assert stored.auto_assigned is False
            assert check.get(Member, solo.member_id).workload == 0
        finally:
            check.close()

    def test_failed_workload_write_rolls_back_creation(self, db, roster, session_factory, monkeypatch):
        solo = roster.member("solo", skills={"JavaScript": 4})
        project = roster.project(members=[solo])

        def broken_increment(*args, **kwargs):
            raise SQLAlchemyError("connection reset")

        monkeypatch.setattr(repository, "increment_workload", broken_increment)

        with pytest.raises(PersistenceError):
            task_service.create_task(db, _auto_task(project))

        check = session_factory()
        try:
            assert check.scalar(select(func.count(Task.task_id))) == 0
        finally:
            check.close()

    def test_concurrent_assignments_lose_no_hours(self, roster, session_factory, fresh_workload):
        solo = roster.member("solo", skills={"JavaScript": 4})
        project = roster.project(members=[solo])
        barrier = threading.Barrier(2)
        errors = []

        def create(hours):
            session = session_factory()
            try:
                barrier.wait()
                task_service.create_task(session, _auto_task(project, title=f"{hours}h", estimated_hours=hours))
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=create, args=(hours,)) for hours in (5, 7)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert fresh_workload(solo.member_id) == 12

    def test_completion_releases_and_reopen_restores(self, db, roster, fresh_workload):
        solo = roster.member("solo", skills={"JavaScript": 4})
        project = roster.project(members=[solo])
        task = task_service.create_task(db, _auto_task(project, estimated_hours=6)).task

        task_service.update_task_status(db, task.task_id, "in-progress")
        assert fresh_workload(solo.member_id) == 6

        task_service.update_task_status(db, task.task_id, "completed")
        assert fresh_workload(solo.member_id) == 0

        task_service.update_task_status(db, task.task_id, "pending")
        assert fresh_workload(solo.member_id) == 6

    def test_delete_releases_open_hours(self, db, roster, fresh_workload):
        solo = roster.member("solo", skills={"JavaScript": 4})
        project = roster.project(members=[solo])
        task = task_service.create_task(db, _auto_task(project, estimated_hours=5)).task

        task_service.delete_task(db, task.task_id)

        assert fresh_workload(solo.member_id) == 0
        assert repository.get_task_by_id(db, task.task_id) is None

    def test_reassign_moves_hours(self, db, roster, fresh_workload):
        a = roster.member("a", skills={"JavaScript": 5})
        b = roster.member("b", skills={"JavaScript": 2})
        project = roster.project(members=[a, b])
        task = task_service.create_task(db, _auto_task(project, estimated_hours=10)).task
        assert task.assigned_to == a.member_id

        task_service.reassign_task(db, task.task_id, b.member_id)

        assert fresh_workload(a.member_id) == 0
        assert fresh_workload(b.member_id) == 10

    def test_new_estimate_adjusts_workload(self, db, roster, fresh_workload):
        from schemas.tasks import TaskUpdate

        solo = roster.member("solo", skills={"JavaScript": 4})
        project = roster.project(members=[solo])
        task = task_service.create_task(db, _auto_task(project, estimated_hours=4)).task

        task_service.update_task(db, task.task_id, TaskUpdate(estimated_hours=9))

        assert fresh_workload(solo.member_id) == 9

    def test_recompute_repairs_drift(self, db, roster, fresh_workload):
        from app import roster_service

        solo = roster.member("solo", skills={"JavaScript": 4})
        project = roster.project(members=[solo])
        task_service.create_task(db, _auto_task(project, estimated_hours=4))
        repository.set_workload(db, solo.member_id, 99)
        db.commit()

        member = roster_service.recompute_workload(db, solo.member_id)

        assert member.workload == 4
        assert fresh_workload(solo.member_id) == 4
