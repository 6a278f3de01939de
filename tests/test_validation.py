"""Tests for rejecting patches that add syntax errors."""

from wfpatch.validation import new_diagnostics, normalize_message, validate_patch
from wfpatch.workflow import Diagnostic, parse_workflow


def diag(column, message, kind="syntax-check", line=1):
    return Diagnostic(line, column, kind, message)


class TestNormalizeMessage:
    """Test message normalization."""

    def test_first_sentence(self):
        assert normalize_message('key "A" is duplicated. previously defined at line:3,col:3') == 'key "A" is duplicated'

    def test_single_sentence(self):
        assert normalize_message("workflow is empty") == "workflow is empty"


class TestNewDiagnostics:
    """Test pairing patched diagnostics with the original ones."""

    def test_no_patched_errors(self):
        assert new_diagnostics([], [diag(1, "a")]) == []

    def test_no_original_errors(self):
        patched = [diag(1, "a"), diag(2, "b")]
        assert new_diagnostics(patched, []) == patched

    def test_all_paired(self):
        original = [diag(1, "a"), diag(3, "b")]
        patched = [diag(1, "a", line=5), diag(3, "b", line=9)]
        assert new_diagnostics(patched, original) == []

    def test_line_drift_in_message_tolerated(self):
        original = [diag(3, "dup. previously defined at line:3,col:3")]
        patched = [diag(3, "dup. previously defined at line:4,col:3")]
        assert new_diagnostics(patched, original) == []

    def test_column_mismatch(self):
        patched = [diag(2, "a")]
        assert new_diagnostics(patched, [diag(1, "a")]) == patched

    def test_kind_mismatch(self):
        patched = [diag(1, "a", kind="env-var")]
        assert new_diagnostics(patched, [diag(1, "a")]) == patched

    def test_new_error_between_known_ones(self):
        original = [diag(1, "a"), diag(1, "b")]
        new = diag(7, "new")
        patched = [diag(1, "a"), new, diag(1, "b")]
        assert new_diagnostics(patched, original) == [new]

    def test_extra_errors_after_originals_consumed(self):
        original = [diag(1, "a")]
        patched = [diag(1, "a"), diag(1, "a")]
        assert new_diagnostics(patched, original) == [diag(1, "a")]


class TestValidatePatch:
    """Test validation of patched workflow text."""

    def test_clean_patch(self):
        text = "on: push\nenv:\n  A: ${{ github.head_ref }}\njobs:\n  a:\n    runs-on: x\n"
        assert validate_patch(text, []) == []

    def test_duplicated_key_is_regression(self):
        text = "on: push\nenv:\n  A: a\n  A: b\njobs:\n  a:\n    runs-on: x\n"
        errs = validate_patch(text, [])
        assert len(errs) == 1
        assert 'key "A" is duplicated' in errs[0].message

    def test_preexisting_errors_tolerated(self):
        original_text = "on: push\nfoo: 1\njobs:\n  a:\n    runs-on: x\n"
        patched_text = "on: push\nfoo: 1\nenv:\n  B: b\njobs:\n  a:\n    runs-on: x\n"
        _, original = parse_workflow(original_text)
        assert len(original) == 1
        assert validate_patch(patched_text, original) == []
