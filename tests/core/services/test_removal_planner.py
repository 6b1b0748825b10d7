from pom_fixer.core.models import (
    INHERITED_ORIGIN,
    Declaration,
    Identity,
    Origin,
    PomModel,
    Scope,
)
from pom_fixer.core.services.patch_service import PatchService
from pom_fixer.core.services.removal_planner import RemovalPlanner


def test_deletions_are_bottom_up(load, pom_builder):
    _, model = load(pom_builder(["a:b", "c:d", "e:f/test"]))
    plan = RemovalPlanner().plan(model, {Identity("a", "b"), Identity("e", "f")})

    assert [d.key for d in plan.deletions] == ["e:f:jar", "a:b:jar"]
    starts = [d.start for d in plan.deletions]
    assert starts == sorted(starts, reverse=True)
    assert plan.warnings == []


def test_applying_plan_removes_exactly_the_spans(load, pom_builder):
    buffer, model = load(pom_builder(["a:b", "c:d", "e:f/test"]))
    before = len(buffer)
    plan = RemovalPlanner().plan(model, {Identity("a", "b"), Identity("e", "f")})
    PatchService().apply(buffer, plan.deletions)

    assert buffer.text == pom_builder(["c:d"])
    removed_lines = sum(d.span_length for d in plan.removed)
    assert len(buffer) == before - removed_lines
    assert plan.line_delta == -removed_lines
    assert not any("<artifactId>b</artifactId>" in line for line in buffer)


def test_duplicates_are_all_removed(load, pom_builder):
    buffer, model = load(pom_builder(["a:b", "c:d", "a:b/test"]))
    plan = RemovalPlanner().plan(model, {Identity("a", "b")})
    assert len(plan.deletions) == 2
    PatchService().apply(buffer, plan.deletions)
    assert buffer.text == pom_builder(["c:d"])


def test_classifier_is_part_of_identity(load, pom_builder):
    _, model = load(pom_builder(["a:b", "a:b:jar:sources"]))
    plan = RemovalPlanner().plan(model, {Identity("a", "b", classifier="sources")})
    assert [d.key for d in plan.deletions] == ["a:b:jar:sources"]


def test_unmatched_identity_is_a_noop(load, pom_builder):
    _, model = load(pom_builder(["a:b"]))
    plan = RemovalPlanner().plan(model, {Identity("x", "y")})
    assert plan.deletions == []
    assert plan.warnings == []


def test_empty_removal_set(load, pom_builder):
    _, model = load(pom_builder(["a:b"]))
    assert RemovalPlanner().plan(model, set()).deletions == []


def test_inherited_match_is_skipped_with_warning():
    local = Declaration(Identity("a", "b"), Scope.COMPILE, 7, 12, Origin.LOCAL, "/proj/child/pom.xml")
    inherited = Declaration(Identity("p", "q"), Scope.COMPILE, 7, 12, Origin.INHERITED, "/proj/pom.xml")
    model = PomModel("/proj/child/pom.xml", [local, inherited])

    plan = RemovalPlanner().plan(model, {Identity("a", "b"), Identity("p", "q")})

    assert [d.key for d in plan.deletions] == ["a:b:jar"]
    (warning,) = plan.warnings
    assert warning.kind == INHERITED_ORIGIN
    assert warning.key == "p:q:jar"
    assert warning.source == "/proj/pom.xml"
    assert "comes from parent" in warning.message
