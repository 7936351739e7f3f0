from postgen.output.pipeline_reporter import PipelineReport


class TestPipelineReport:
    def test_nothing_attempted_is_ok(self):
        assert PipelineReport().ok

    def test_partial_success_is_ok(self):
        report = PipelineReport(attempted=2, succeeded=["knoten"], failed=[(2, "timeout")])

        assert report.ok
        assert report.summary() == "1/2"

    def test_all_failed(self):
        report = PipelineReport(attempted=1, failed=[(1, "boom")])

        assert not report.ok
        assert "run 1 failed: boom" in report.to_markdown()
