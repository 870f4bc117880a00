# tests/test_errors.py

from scensim_core.errors import Diagnosable, DiagnosableError, format_diagnostic_report


class TestDiagnosticReport:
    """VERIFIES: Reports list only the context values that are set, in a fixed order."""

    def test_header_details_and_suggestion(self):
        report = format_diagnostic_report(
            error_type="Pending Call In Query",
            details="first line\nsecond line",
            suggestion="Use scCall.",
            context={'step_id': "q-1", 'user_input': "getSum"},
        )
        lines = report.splitlines()
        assert "Actionable Diagnostic Report" in report
        assert "Error Type:     Pending Call In Query" in lines
        assert "Step:           q-1" in lines
        assert "User Input:     'getSum'" in lines
        assert "  second line" in lines
        assert "  Use scCall." in lines
        assert lines.index("Step:           q-1") < lines.index("User Input:     'getSum'")

    def test_empty_context_and_suggestion_are_left_out(self):
        report = format_diagnostic_report("Oops", "broken", "", context={'address': None})
        assert "Address:" not in report
        assert "Suggestion:" not in report


class TestDiagnosableError:
    """VERIFIES: Concrete diagnosable errors are recognised through the protocol."""

    def test_subclass_satisfies_protocol(self):
        class Complete(DiagnosableError):
            def get_diagnostic_report(self) -> str:
                return "report"

        assert isinstance(Complete(), Diagnosable)
