import pytest

from compliance_orchestrator.processes.pci_dss import PciDssInputs

PCI = "security-compliance/pci-dss-compliance"


@pytest.mark.parametrize(
    ("level", "penetration_test", "generate_roc"),
    [
        ("level-1", True, True),
        ("level-2", True, False),
        ("level-3", False, False),
        ("level-4", False, False),
    ],
)
def test_merchant_level_defaults(level, penetration_test, generate_roc) -> None:
    inputs = PciDssInputs.model_validate({"projectName": "checkout", "merchantLevel": level})

    assert inputs.penetration_test is penetration_test
    assert inputs.generate_roc is generate_roc


def test_explicit_values_override_merchant_level_defaults() -> None:
    inputs = PciDssInputs.model_validate(
        {"projectName": "checkout", "merchantLevel": "level-4", "penetrationTest": True}
    )

    assert inputs.penetration_test is True
    assert inputs.generate_roc is False


def test_level_four_skips_penetration_test_and_roc(run_workflow) -> None:
    result, executor = run_workflow(PCI, {"projectName": "checkout", "merchantLevel": "level-4"})

    names = executor.task_names()
    assert "execute-penetration-test" not in names
    assert "generate-roc" not in names
    assert "generate-aoc" in names
    assert result["securityTesting"]["penetrationTest"] is None
    assert result["documentation"]["rocPath"] is None


def test_roc_requires_level_one_even_when_requested(run_workflow) -> None:
    _, executor = run_workflow(
        PCI,
        {"projectName": "checkout", "merchantLevel": "level-2", "generateRoc": True},
    )

    assert "generate-roc" not in executor.task_names()


def test_requirement_results_cover_all_twelve_requirements(run_workflow) -> None:
    result, executor = run_workflow(
        PCI,
        {"projectName": "checkout"},
        {"calculate-compliance-score": {"complianceScore": 100}},
    )

    assert [item["requirement"] for item in result["requirementResults"]] == list(range(1, 13))
    assert result["overallCompliant"] is True
    assert result["success"] is True
    titles = [gate.title for gate in executor.gates]
    assert "Requirement 3 - Data Protection Review" in titles
    assert "Requirement 11 - Security Testing Review" in titles
