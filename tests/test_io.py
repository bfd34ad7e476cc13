"""
Tests for the persistence and import layer.

Serializers, compact set notation, the JSONL session store, the workout
plan importer and the YAML options loader.
"""

import json
from datetime import datetime, timezone

import pytest

from lift_insights.core.analyzer import analyze_workouts_with_predictions
from lift_insights.core.config import AnalysisOptions
from lift_insights.core.engine.config_loader import load_analysis_options, load_config
from lift_insights.core.models import (
    ExerciseLog,
    IntensityMetric,
    PlannedExercise,
    SetLog,
    WorkoutDay,
    WorkoutSession,
    WorkoutSplit,
)
from lift_insights.io.plan_parser import (
    parse_workout_plan,
    strip_code_fence,
    validate_workout_plan,
)
from lift_insights.io.serializers import (
    ValidationError,
    analysis_to_dict,
    dict_to_session,
    dict_to_split,
    json_line_to_session,
    parse_sets_string,
    session_to_dict,
    session_to_json_line,
    split_to_dict,
    validate_datetime,
)
from lift_insights.io.session_store import SessionStore

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _session(sid: str, day: int, notes: str | None = None) -> WorkoutSession:
    when = datetime(2026, 2, day, 18, 0)
    return WorkoutSession(
        id=sid,
        started_at=when,
        completed_at=when,
        status="completed",
        exercise_logs=[
            ExerciseLog(
                "Bench Press",
                [SetLog(1, 5, weight=100 + day), SetLog(2, 5, weight=100 + day)],
                exercise_id="bench_press",
            )
        ],
        notes=notes,
    )


PLAN = {
    "name": "Upper/Lower",
    "description": "Four days a week",
    "days": [
        {
            "name": "Upper",
            "exercises": [
                {
                    "name": "Bench Press",
                    "workingSets": 3,
                    "warmupSets": 2,
                    "repRange": {"min": 5, "max": 8},
                    "intensityMetric": {"type": "rpe", "value": 8},
                    "restTime": 3,
                    "notes": "Pause the first rep",
                }
            ],
        },
        {
            "name": "Lower",
            "exercises": [
                {"name": "Squat", "working_sets": 4, "rep_range_min": 3, "rep_range_max": 5}
            ],
        },
    ],
}


def _plan(**changes) -> dict:
    plan = json.loads(json.dumps(PLAN))
    plan.update(changes)
    return plan


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------


class TestSessionSerialization:
    def test_round_trip(self):
        session = WorkoutSession(
            id="abc123",
            split_id="split-1",
            split_name="Upper/Lower",
            day_id="day-1",
            day_name="Upper",
            started_at=datetime(2026, 2, 10, 17, 0),
            completed_at=datetime(2026, 2, 10, 18, 5),
            status="completed",
            total_duration=65.0,
            notes="Good session",
            exercise_logs=[
                ExerciseLog(
                    "Bench Press",
                    [
                        SetLog(1, 8, set_type="warmup", weight=135),
                        SetLog(2, 5, weight=225, rpe=8.5, rir=1.5,
                               completed_at=datetime(2026, 2, 10, 17, 20)),
                        SetLog(3, 3, weight=225, completed=False),
                    ],
                    exercise_id="bench_press",
                    notes="Felt strong",
                ),
                ExerciseLog("Pull-Up", [SetLog(1, 10)]),
            ],
        )
        line = session_to_json_line(session)
        assert "\n" not in line
        assert json_line_to_session(line) == session
        assert dict_to_session(session_to_dict(session)) == session

    def test_compact_sets(self):
        d = session_to_dict(_session("s", 1))
        first = d["exercise_logs"][0]["sets"][0]
        assert first == {"set_number": 1, "type": "working", "reps": 5, "completed": True, "weight": 101.0}

    def test_minimal_record_defaults(self):
        session = dict_to_session({"id": "x", "started_at": "2026-02-01T10:00:00"})
        assert session.status == "active"
        assert session.exercise_logs == []
        assert session.completed_at is None

    def test_offset_timestamps_become_naive_local(self):
        expected = datetime(2026, 1, 1, 10, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert validate_datetime("2026-01-01T10:00:00+00:00", "date") == expected

        session = dict_to_session({
            "id": "x",
            "started_at": "2026-01-01T09:00:00+00:00",
            "completed_at": "2026-01-01T10:00:00+00:00",
            "status": "completed",
        })
        assert session.started_at.tzinfo is None
        assert session.completed_at == expected
        # Mixed with a naive session, ordering still works
        naive = dict_to_session({"id": "y", "started_at": "2026-01-02T10:00:00"})
        assert sorted([naive, session], key=lambda s: s.started_at)[0] is session

    @pytest.mark.parametrize(
        "line",
        [
            "not json",
            "[1, 2]",
            '{"started_at": "2026-02-01T10:00:00"}',
            '{"id": "x"}',
            '{"id": "x", "started_at": "yesterday"}',
            '{"id": "x", "started_at": "2026-02-01T10:00:00", "status": "done"}',
            '{"id": "x", "started_at": "2026-02-01T10:00:00", "exercise_logs": [{"exercise_name": ""}]}',
            '{"id": "x", "started_at": "2026-02-01T10:00:00", "exercise_logs": '
            '[{"exercise_name": "Bench", "sets": [{"set_number": 1, "reps": 5, "rpe": 11}]}]}',
            '{"id": "x", "started_at": "2026-02-01T10:00:00", "exercise_logs": '
            '[{"exercise_name": "Bench", "sets": [{"reps": 5}]}]}',
        ],
    )
    def test_invalid_records(self, line):
        with pytest.raises(ValidationError):
            json_line_to_session(line)


class TestSplitSerialization:
    def test_round_trip(self):
        split = WorkoutSplit(
            id="split-1",
            name="Full Body",
            description="Three days",
            days=[
                WorkoutDay(
                    id="d1",
                    name="Day A",
                    exercises=[
                        PlannedExercise(
                            id="e1", name="Squat", working_sets=3, rep_range_min=5,
                            rep_range_max=8, warmup_sets=1,
                            intensity_metric=IntensityMetric("rir", 2), rest_time=3.0,
                        )
                    ],
                )
            ],
            created_at=datetime(2026, 1, 1, 9, 0),
            updated_at=datetime(2026, 1, 2, 9, 0),
        )
        d = split_to_dict(split)
        assert d["created_at"] == "2026-01-01T09:00:00"
        assert dict_to_split(json.loads(json.dumps(d))) == split

    def test_missing_field(self):
        with pytest.raises(ValidationError, match="missing"):
            dict_to_split({"id": "x", "name": "No dates"})


class TestAnalysisSerialization:
    def test_analysis_is_json_ready(self):
        sessions = [_session(f"s{d}", d) for d in (20, 22, 24)]
        analysis = analyze_workouts_with_predictions(sessions, now=datetime(2026, 2, 25))
        d = analysis_to_dict(analysis)

        decoded = json.loads(json.dumps(d))
        assert decoded["analyzed_date"] == "2026-02-25T00:00:00"
        assert decoded["time_range"]["start"] == "2026-02-20T18:00:00"
        assert decoded["predictions_enabled"] is True
        assert decoded["weight_predictions"]["bench_press"]["predicted_next_weight"] == 126
        pattern = decoded["exercise_patterns"][0]
        assert pattern["last_three_sessions"][0]["date"] == "2026-02-20T18:00:00"


# ---------------------------------------------------------------------------
# Compact set notation
# ---------------------------------------------------------------------------


class TestParseSetsString:
    def test_mixed_groups(self):
        sets = parse_sets_string("w:135x8, 225x5@8, 225x5x2")
        assert [s.set_number for s in sets] == [1, 2, 3, 4]
        assert [s.set_type for s in sets] == ["warmup", "working", "working", "working"]
        assert [s.weight for s in sets] == [135, 225, 225, 225]
        assert [s.reps for s in sets] == [8, 5, 5, 5]
        assert [s.rpe for s in sets] == [None, 8, None, None]
        assert all(s.completed for s in sets)

    def test_bodyweight(self):
        sets = parse_sets_string("12, 10@9.5")
        assert [s.weight for s in sets] == [None, None]
        assert sets[1].rpe == 9.5

    def test_decimal_weight_and_spacing(self):
        [s] = parse_sets_string(" 102.5 x 5 @ 7 ")
        assert s.weight == 102.5
        assert s.rpe == 7

    @pytest.mark.parametrize("text", ["", "   ", ", ,", "abc", "225x", "225x5@11", "225x5x0", "x5"])
    def test_invalid(self, text):
        with pytest.raises(ValidationError):
            parse_sets_string(text)


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class TestSessionStore:
    def test_missing_file(self, tmp_path):
        store = SessionStore(tmp_path / "sessions.jsonl")
        assert not store.exists()
        with pytest.raises(FileNotFoundError):
            store.load_sessions()

    def test_init_creates_parents(self, tmp_path):
        store = SessionStore(tmp_path / "nested" / "dir" / "sessions.jsonl")
        store.init()
        assert store.exists()
        assert store.load_sessions() == []

    def test_append_keeps_chronological_order(self, tmp_path):
        store = SessionStore(tmp_path / "sessions.jsonl")
        store.append_session(_session("late", 10))
        store.append_session(_session("early", 3))
        store.append_session(_session("mid", 6))
        assert [s.id for s in store.load_sessions()] == ["early", "mid", "late"]

        lines = (tmp_path / "sessions.jsonl").read_text().splitlines()
        assert [json.loads(line)["id"] for line in lines] == ["early", "mid", "late"]

    def test_append_replaces_same_id(self, tmp_path):
        store = SessionStore(tmp_path / "sessions.jsonl")
        store.append_session(_session("a", 3, notes="first"))
        store.append_session(_session("a", 3, notes="second"))
        [session] = store.load_sessions()
        assert session.notes == "second"

    def test_delete(self, tmp_path):
        store = SessionStore(tmp_path / "sessions.jsonl")
        for sid, day in (("a", 1), ("b", 2), ("c", 3)):
            store.append_session(_session(sid, day))

        removed = store.delete_session_at(1)
        assert removed.id == "b"
        assert [s.id for s in store.load_sessions()] == ["a", "c"]

        with pytest.raises(IndexError):
            store.delete_session_at(2)

    def test_blank_lines_skipped_and_bad_line_reported(self, tmp_path):
        path = tmp_path / "sessions.jsonl"
        good = session_to_json_line(_session("a", 1))
        path.write_text(f"{good}\n\n")
        assert len(SessionStore(path).load_sessions()) == 1

        path.write_text(f"{good}\n{{broken\n")
        with pytest.raises(ValidationError, match="line 2"):
            SessionStore(path).load_sessions()

    def test_splits(self, tmp_path):
        store = SessionStore(tmp_path / "sessions.jsonl")
        assert store.load_splits() == []

        first = parse_workout_plan(json.dumps(PLAN))
        store.save_split(first)
        store.save_split(first)
        second = parse_workout_plan(json.dumps(_plan(name="Push/Pull")))
        store.save_split(second)

        assert [s.name for s in store.load_splits()] == ["Upper/Lower", "Push/Pull"]
        assert store.load_splits()[0] == first
        assert store.splits_path == tmp_path / "splits.json"

    def test_corrupt_splits_file(self, tmp_path):
        (tmp_path / "splits.json").write_text("{not json")
        with pytest.raises(ValidationError):
            SessionStore(tmp_path / "sessions.jsonl").load_splits()


# ---------------------------------------------------------------------------
# Workout plan import
# ---------------------------------------------------------------------------


class TestPlanImport:
    def test_fenced_reply(self):
        reply = "Here is your plan:\n```json\n" + json.dumps(PLAN, indent=2) + "\n```\nEnjoy!"
        split = parse_workout_plan(reply)
        assert split.name == "Upper/Lower"
        assert split.description == "Four days a week"
        assert [d.name for d in split.days] == ["Upper", "Lower"]

    def test_camel_and_snake_case_fields(self):
        split = parse_workout_plan(json.dumps(PLAN))
        bench = split.days[0].exercises[0]
        assert (bench.working_sets, bench.warmup_sets) == (3, 2)
        assert (bench.rep_range_min, bench.rep_range_max) == (5, 8)
        assert bench.intensity_metric == IntensityMetric("rpe", 8)
        assert bench.rest_time == 3.0
        assert bench.notes == "Pause the first rep"

        squat = split.days[1].exercises[0]
        assert (squat.working_sets, squat.warmup_sets) == (4, 0)
        assert (squat.rep_range_min, squat.rep_range_max) == (3, 5)
        assert squat.intensity_metric == IntensityMetric()
        assert squat.rest_time == 2.0

    def test_fresh_unique_ids(self):
        split = parse_workout_plan(json.dumps(PLAN))
        ids = [split.id] + [d.id for d in split.days] + [
            e.id for d in split.days for e in d.exercises
        ]
        assert len(set(ids)) == len(ids)
        assert all(len(i) == 12 for i in ids)

    def test_strip_code_fence(self):
        assert strip_code_fence("  {\"a\": 1}  ") == '{"a": 1}'
        assert strip_code_fence("```\n{}\n```") == "{}"

    def test_validate_accepts_plan(self):
        assert validate_workout_plan(PLAN)

    @pytest.mark.parametrize(
        "plan",
        [
            None,
            [],
            _plan(name="  "),
            _plan(days=[]),
            _plan(days=[{"name": "Upper", "exercises": []}]),
            _plan(days=[{"name": "", "exercises": PLAN["days"][0]["exercises"]}]),
            _plan(days=[{"name": "Upper", "exercises": [{"name": "Bench", "workingSets": 0, "repRange": {"min": 5, "max": 8}}]}]),
            _plan(days=[{"name": "Upper", "exercises": [{"name": "Bench", "workingSets": "3", "repRange": {"min": 5, "max": 8}}]}]),
            _plan(days=[{"name": "Upper", "exercises": [{"name": "Bench", "workingSets": 3, "repRange": {"min": 5}}]}]),
            _plan(days=[{"name": "Upper", "exercises": [{"workingSets": 3, "repRange": {"min": 5, "max": 8}}]}]),
        ],
    )
    def test_validate_rejects(self, plan):
        assert not validate_workout_plan(plan)

    def test_not_json(self):
        with pytest.raises(ValidationError, match="not valid JSON"):
            parse_workout_plan("Sorry, I cannot help with that.")

    def test_invalid_structure(self):
        with pytest.raises(ValidationError, match="Invalid workout plan structure"):
            parse_workout_plan(json.dumps({"name": "Empty"}))

    def test_inverted_rep_range(self):
        plan = _plan(days=[{"name": "Upper", "exercises": [
            {"name": "Bench", "workingSets": 3, "repRange": {"min": 8, "max": 5}}
        ]}])
        with pytest.raises(ValidationError):
            parse_workout_plan(json.dumps(plan))


# ---------------------------------------------------------------------------
# YAML options
# ---------------------------------------------------------------------------


class TestConfigLoader:
    def test_bundled_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")
        assert config["analysis"]["lookback_days"] == 30
        assert load_analysis_options(tmp_path / "absent.yaml") == AnalysisOptions()

    def test_user_override_merges(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("analysis:\n  lookback_days: 60\n  weight_unit: kg\n")
        opts = load_analysis_options(path)
        assert opts.lookback_days == 60
        assert opts.weight_unit == "kg"
        assert opts.min_sessions == 3

    def test_unknown_key_warns(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("analysis:\n  colour: red\n  min_sessions: 4\n")
        with pytest.warns(UserWarning, match="colour"):
            opts = load_analysis_options(path)
        assert opts.min_sessions == 4

    def test_broken_yaml_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("analysis: [unclosed\n")
        with pytest.warns(UserWarning, match="Ignoring config override"):
            opts = load_analysis_options(path)
        assert opts == AnalysisOptions()

    def test_out_of_range_value(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("analysis:\n  min_sessions: 0\n")
        with pytest.raises(ValueError, match="min_sessions"):
            load_analysis_options(path)
