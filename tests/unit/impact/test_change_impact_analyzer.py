"""Tests for ChangeImpactAnalyzer against the in-memory gateway."""

from unittest.mock import Mock, patch

import pytest

from flowsight.exceptions import ChangeSetAlreadyAnalyzedError, DiffComputationError
from flowsight.impact import ChangeImpactAnalyzer
from flowsight.repositories.persistence.dtos import (
    ChangedFileDto,
    ChangeStatus,
    FlowCreateDto,
    FlowGraphData,
    FlowPriority,
    RiskLevel,
)
from flowsight.repositories.version_control import AbstractVersionController
from flowsight.utils.retry import RetryPolicy

FAST_RETRY_POLICY = RetryPolicy(
    initial_interval=0,
    maximum_attempts=3,
    non_retryable_errors=(DiffComputationError, ChangeSetAlreadyAnalyzedError),
)


def modified(*paths: str):
    return [ChangedFileDto(path=path, status=ChangeStatus.MODIFIED) for path in paths]


@pytest.fixture
def project(gateway):
    return gateway.get_or_create_project("shop")


@pytest.fixture
def checkout_flow(gateway, project):
    return gateway.get_or_create_flow(
        project.id,
        FlowCreateDto(
            name="Checkout",
            priority=FlowPriority.CRITICAL,
            entry_point="/checkout",
            graph_data=FlowGraphData(pages=["/checkout"]),
        ),
    )


@pytest.fixture
def version_controller() -> Mock:
    return Mock(spec=AbstractVersionController)


@pytest.fixture
def analyzer(gateway, version_controller) -> ChangeImpactAnalyzer:
    return ChangeImpactAnalyzer(gateway, version_controller, retry_policy=FAST_RETRY_POLICY)


class TestAnalyzeChanges:
    def test_checkout_example(self, analyzer, gateway, version_controller, project, checkout_flow) -> None:
        version_controller.get_changed_files.return_value = modified("/checkout/page.tsx", "/unrelated.ts")

        report = analyzer.analyze_changes(project.id, "base", "head")

        assert len(report.flows) == 1
        affected = report.flows[0]
        assert affected.flow_id == checkout_flow.id
        assert affected.confidence == 0.9
        assert affected.matched_files == ["/checkout/page.tsx"]
        assert affected.risk_score == 1.0
        assert report.risk_score == 1.0
        assert report.risk_level == RiskLevel.CRITICAL
        assert [change.path for change in report.changes] == ["/checkout/page.tsx", "/unrelated.ts"]

        change_set = gateway.get_change_set(report.change_set_id)
        assert change_set.is_analyzed
        assert change_set.risk_level == RiskLevel.CRITICAL
        assert change_set.affected_flow_ids == [checkout_flow.id]

        flow = gateway.get_flow(checkout_flow.id)
        assert flow.risk_score == pytest.approx(0.2)
        assert flow.affected_by_changes == [report.change_set_id]

    def test_empty_diff_records_nothing(self, analyzer, gateway, version_controller, project, checkout_flow) -> None:
        version_controller.get_changed_files.return_value = []

        report = analyzer.analyze_changes(project.id, "abc", "abc")

        assert report.flows == []
        assert report.risk_level == RiskLevel.LOW
        assert report.risk_score == 0.0
        assert report.change_set_id is None
        assert gateway.get_flow(checkout_flow.id).risk_score == 0.0

    def test_no_affected_flows_records_low_risk_change_set(
        self, analyzer, gateway, version_controller, project, checkout_flow
    ) -> None:
        version_controller.get_changed_files.return_value = modified("docs/README.md")

        report = analyzer.analyze_changes(project.id, "a", "b")

        assert report.flows == []
        assert report.risk_level == RiskLevel.LOW
        assert gateway.get_change_set(report.change_set_id).affected_flow_ids == []

    def test_diff_failure_propagates_without_retry(self, analyzer, version_controller, project) -> None:
        version_controller.get_changed_files.side_effect = DiffComputationError("bad revision")

        with pytest.raises(DiffComputationError):
            analyzer.analyze_changes(project.id, "a", "b")

        assert version_controller.get_changed_files.call_count == 1

    def test_affected_flows_sorted_by_risk(self, analyzer, gateway, version_controller, project, checkout_flow):
        low_flow = gateway.get_or_create_flow(
            project.id, FlowCreateDto(name="Newsletter Signup", priority=FlowPriority.LOW, entry_point="/newsletter")
        )
        version_controller.get_changed_files.return_value = modified("app/newsletter/page.tsx", "app/checkout/page.tsx")

        report = analyzer.analyze_changes(project.id, "a", "b")

        assert [entry.flow_id for entry in report.flows] == [checkout_flow.id, low_flow.id]
        # (1.0 * 2.0 + 0.4 * 1.0) / 3.0
        assert report.risk_score == pytest.approx(0.8)

    def test_risk_increment_is_capped(self, analyzer, gateway, version_controller, project, checkout_flow) -> None:
        version_controller.get_changed_files.return_value = modified("/checkout/page.tsx")

        for index in range(7):
            analyzer.analyze_changes(project.id, f"base{index}", f"head{index}")

        flow = gateway.get_flow(checkout_flow.id)
        assert flow.risk_score == 1.0
        assert len(flow.affected_by_changes) == 7

    def test_transient_persistence_errors_are_retried(
        self, analyzer, gateway, version_controller, project, checkout_flow
    ) -> None:
        version_controller.get_changed_files.return_value = modified("/checkout/page.tsx")
        original = gateway.get_flows
        calls = []

        def flaky_get_flows(project_id, active_only=True):
            calls.append(project_id)
            if len(calls) == 1:
                raise ConnectionError("connection reset")
            return original(project_id, active_only)

        with patch.object(gateway, "get_flows", side_effect=flaky_get_flows):
            report = analyzer.analyze_changes(project.id, "a", "b")

        assert len(calls) == 2
        assert len(report.flows) == 1

    def test_retried_change_set_write_is_recorded_once(
        self, analyzer, gateway, version_controller, project, checkout_flow
    ) -> None:
        version_controller.get_changed_files.return_value = modified("/checkout/page.tsx")
        original = gateway.create_change_set
        ids = []

        def commit_then_fail(*args):
            change_set = original(*args)
            ids.append(change_set.id)
            if len(ids) == 1:
                raise ConnectionError("connection reset after commit")
            return change_set

        with patch.object(gateway, "create_change_set", side_effect=commit_then_fail):
            report = analyzer.analyze_changes(project.id, "a", "b")

        assert ids == [report.change_set_id, report.change_set_id]
        assert len(gateway._change_sets) == 1
        assert gateway.get_change_set(report.change_set_id).is_analyzed


class TestChangeSetWriteOnce:
    def test_second_analysis_update_raises(self, gateway, project) -> None:
        change_set = gateway.create_change_set(project.id, "a", "b", modified("x.ts"))
        gateway.update_change_set_analysis(change_set.id, RiskLevel.LOW, 0.0, [])

        with pytest.raises(ChangeSetAlreadyAnalyzedError):
            gateway.update_change_set_analysis(change_set.id, RiskLevel.HIGH, 0.7, [])

        assert gateway.get_change_set(change_set.id).risk_level == RiskLevel.LOW


class TestClearAffectedFlows:
    def test_resets_affected_flows(self, analyzer, gateway, version_controller, project, checkout_flow) -> None:
        version_controller.get_changed_files.return_value = modified("/checkout/page.tsx")
        analyzer.analyze_changes(project.id, "a", "b")

        cleared = analyzer.clear_affected_flows(project.id)

        assert cleared == 1
        flow = gateway.get_flow(checkout_flow.id)
        assert flow.risk_score == 0.0
        assert flow.affected_by_changes == []
        assert gateway.get_affected_flows(project.id) == []
