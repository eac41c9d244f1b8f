"""Basic health check tests."""

from typer.testing import CliRunner

from flowfam.main import app

runner = CliRunner()


def test_import_flowfam():
    """Test that flowfam package can be imported."""
    import flowfam
    assert flowfam.__version__ == "1.0.0"


def test_import_onboarding():
    """Test that the onboarding core can be imported."""
    from onboarding import (
        OnboardingFlow,
        OnboardingRouter,
        OnboardingSignals,
        RoutingDecision,
        decide_route,
    )

    assert decide_route(OnboardingSignals()) == RoutingDecision.LANGUAGE_SELECTION
    assert OnboardingFlow is not None
    assert OnboardingRouter is not None


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.stdout


def test_health_command():
    result = runner.invoke(app, ["health"])
    assert result.exit_code == 0
    assert "Configuration loaded" in result.stdout
