import pytest

from pom_fixer.core.exceptions import ErrorKind, MissingSectionError
from pom_fixer.core.models import DUPLICATE_ADDITION, Addition
from pom_fixer.core.services.insertion_planner import InsertionPlanner, partition_regions, placement_index
from pom_fixer.core.services.patch_service import PatchService


def _add(*specs):
    """``"g:a[/scope]"`` -> Addition with version 1.0."""
    additions = []
    for entry in specs:
        coords, _, scope = entry.partition("/")
        additions.append(Addition.from_coordinates(coords, "1.0", scope or None))
    return additions


@pytest.fixture
def insert(load):
    """Plan and apply additions, returning ``(text, plan)``."""
    def _insert(text, additions, managed=frozenset()):
        buffer, model = load(text)
        plan = InsertionPlanner().plan(model, additions, managed, buffer.newline)
        PatchService().apply(buffer, plan.ordered())
        return buffer.text, plan
    return _insert


class TestRegions:
    def test_primary_and_test_regions(self, load, pom_builder):
        _, model = load(pom_builder(["a:a", "b:b/runtime", "t:t/test", "u:u/test"]))
        regions = partition_regions(model)
        assert [d.identity.artifact_id for d in regions.primary] == ["a", "b"]
        assert [d.identity.artifact_id for d in regions.test] == ["t", "u"]
        assert regions.primary_anchor == regions.primary[-1].end
        assert regions.test_anchor == regions.test[-1].end

    def test_empty_test_region_anchors_after_primary(self, load, pom_builder):
        _, model = load(pom_builder(["x:y"]))
        regions = partition_regions(model)
        assert regions.test == []
        assert regions.test_anchor == regions.primary[-1].end

    def test_empty_primary_region_anchors_before_tests(self, load, pom_builder):
        _, model = load(pom_builder(["t:t/test"]))
        regions = partition_regions(model)
        assert regions.primary == []
        assert regions.primary_anchor == regions.test[0].start

    def test_empty_block_anchors_at_end_marker(self, load, pom_builder):
        _, model = load(pom_builder([]))
        regions = partition_regions(model)
        assert regions.primary_anchor == regions.test_anchor == model.section.end

    def test_middle_entries_belong_to_no_region(self, load, pom_builder):
        _, model = load(pom_builder(["a:a", "t:t/test", "b:b", "u:u/test"]))
        regions = partition_regions(model)
        assert [d.identity.artifact_id for d in regions.primary] == ["a"]
        assert [d.identity.artifact_id for d in regions.test] == ["u"]

    def test_inherited_declarations_are_ignored(self, write_pom, pom_builder):
        from pom_fixer.core.parser.pom_loader import PomLoader

        write_pom(pom_builder(["p:p/test"], artifact_id="parent"))
        child = write_pom(pom_builder(["a:a"], parent="parent"), subdir="child")
        model = PomLoader(resolve_parents=True).load_path(child)
        regions = partition_regions(model)
        assert [d.conflict_key for d in regions.primary] == ["a:a:jar"]
        assert regions.test == []

    def test_missing_section(self, load, pom_builder):
        _, model = load(pom_builder(None))
        with pytest.raises(MissingSectionError) as excinfo:
            partition_regions(model)
        assert excinfo.value.kind is ErrorKind.MISSING_SECTION


class TestPlacement:
    def test_placement_index_within_group(self, load, pom_builder):
        _, model = load(pom_builder(["a:b", "a:c"]))
        region = model.declarations
        (bb,) = _add("a:bb")
        assert placement_index(bb, region, anchor=99) == region[1].start

    def test_after_group_when_largest(self, load, pom_builder):
        _, model = load(pom_builder(["a:b", "a:c", "z:z"]))
        region = model.declarations
        (d,) = _add("a:d")
        assert placement_index(d, region, anchor=99) == region[1].end

    def test_anchor_when_no_group_and_largest(self, load, pom_builder):
        _, model = load(pom_builder(["a:b"]))
        (z,) = _add("z:z")
        assert placement_index(z, model.declarations, anchor=42) == 42


class TestInsertionScenarios:
    def test_between_group_members(self, insert, pom_builder):
        text, _ = insert(pom_builder(["a:b", "a:c"]), _add("a:bb"))
        assert text == pom_builder(["a:b", "a:bb", "a:c"])

    def test_test_scope_with_empty_test_region_goes_after_primary(self, insert, pom_builder):
        text, _ = insert(pom_builder(["x:y"]), _add("m:n/test"))
        assert text == pom_builder(["x:y", "m:n/test"])

    def test_after_last_group_member(self, insert, pom_builder):
        text, _ = insert(pom_builder(["a:b", "z:z"]), _add("a:c"))
        assert text == pom_builder(["a:b", "a:c", "z:z"])

    def test_without_group_uses_region_order(self, insert, pom_builder):
        text, _ = insert(pom_builder(["b:x", "d:x"]), _add("c:x", "a:a", "z:z"))
        assert text == pom_builder(["a:a", "b:x", "c:x", "d:x", "z:z"])

    def test_several_additions_in_one_group_stay_sorted(self, insert, pom_builder):
        text, _ = insert(pom_builder(["a:b", "a:e"]), _add("a:f", "a:c", "a:d"))
        assert text == pom_builder(["a:b", "a:c", "a:d", "a:e", "a:f"])

    def test_primary_before_existing_tests(self, insert, pom_builder):
        text, _ = insert(pom_builder(["t:t/test"]), _add("a:a"))
        assert text == pom_builder(["a:a", "t:t/test"])

    def test_empty_block(self, insert, pom_builder):
        text, _ = insert(pom_builder([]), _add("b:b/test", "a:a"))
        assert text == pom_builder(["a:a", "b:b/test"])

    def test_region_separation(self, insert, pom_builder):
        text, plan = insert(pom_builder(["a:a", "z:z/test"]), _add("b:b/test", "y:y", "0:0/test"))
        assert text == pom_builder(["a:a", "y:y", "0:0/test", "b:b/test", "z:z/test"])
        assert [i.key for i in plan.test_phase] == ["b:b:jar", "0:0:jar"]
        assert [i.key for i in plan.primary_phase] == ["y:y:jar"]

    def test_interleaved_block_appends_at_end(self, insert, pom_builder):
        text, _ = insert(pom_builder(["t:t/test", "a:a"]), _add("b:b"))
        assert text == pom_builder(["t:t/test", "a:a", "b:b"])

    def test_unsorted_region_keeps_indices_valid(self, insert, pom_builder):
        text, _ = insert(pom_builder(["z:z", "a:b"]), _add("m:m", "a:a"))
        assert text == pom_builder(["m:m", "z:z", "a:a", "a:b"])

    def test_provided_and_runtime_go_to_primary_region(self, insert, pom_builder):
        text, _ = insert(pom_builder(["a:a", "t:t/test"]), _add("b:b/provided", "c:c/runtime"))
        assert text == pom_builder(["a:a", "b:b/provided", "c:c/runtime", "t:t/test"])

    def test_crlf_documents_get_crlf_lines(self, insert, pom_builder):
        text, _ = insert(pom_builder(["a:b"], newline="\r\n"), _add("a:c"))
        assert text == pom_builder(["a:b", "a:c"], newline="\r\n")


class TestVersionsAndDuplicates:
    def test_managed_from_caller(self, insert, pom_builder):
        text, _ = insert(pom_builder(["a:a"]), _add("b:b"), managed={"b:b:jar"})
        assert "<version>1.0</version>" in text
        assert text.count("<version>") == 1

    def test_managed_from_document(self, insert, pom_builder):
        original = pom_builder(["a:a"], managed=["b:b"])
        text, _ = insert(original, _add("b:b"))
        # Only the two versions already in the document
        assert text.count("<version>1.0</version>") == original.count("<version>1.0</version>")
        assert "      <artifactId>b</artifactId>\n    </dependency>\n" in text

    def test_already_declared_is_skipped(self, insert, pom_builder):
        original = pom_builder(["a:b"])
        text, plan = insert(original, _add("a:b/test"))
        assert text == original
        assert plan.added == []
        assert plan.warnings == []

    def test_conflicting_duplicate_request_warns(self, insert, pom_builder):
        text, plan = insert(pom_builder(["a:a"]), _add("b:b", "b:b/test"))
        assert text == pom_builder(["a:a", "b:b"])
        (warning,) = plan.warnings
        assert warning.kind == DUPLICATE_ADDITION

    def test_identical_duplicate_request_is_silent(self, insert, pom_builder):
        text, plan = insert(pom_builder(["a:a"]), _add("b:b", "b:b"))
        assert text == pom_builder(["a:a", "b:b"])
        assert plan.warnings == []

    def test_missing_section_raises(self, load, pom_builder):
        _, model = load(pom_builder(None))
        with pytest.raises(MissingSectionError):
            InsertionPlanner().plan(model, _add("a:a"))

    def test_line_delta(self, insert, pom_builder):
        _, plan = insert(pom_builder(["a:a"]), _add("b:b", "c:c/test"))
        assert plan.line_delta == 5 + 6
