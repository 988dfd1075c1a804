import aws_cdk as core
import pytest

from records_cdk.settings import BLOG_API, ITEMS_API, with_context_overrides


# Test: los valores de contexto CDK se aplican sobre el preset
def test_context_overrides_applied():
    app = core.App(context={
        "allowedOrigin": "https://blog.example.com",
        "stageName": "prod",
        "logLevel": "WARNING",
    })

    settings = with_context_overrides(app, BLOG_API)

    assert settings.allowed_origin == "https://blog.example.com"
    assert settings.stage_name == "prod"
    assert settings.log_level == "WARNING"
    assert settings.collection == BLOG_API.collection


def test_without_context_keeps_preset():
    settings = with_context_overrides(core.App(), ITEMS_API)

    assert settings == ITEMS_API


# Test: "debug" se normaliza, porque logging no acepta minúsculas
def test_log_level_is_normalized():
    app = core.App(context={"logLevel": "debug"})

    settings = with_context_overrides(app, ITEMS_API)

    assert settings.log_level == "DEBUG"
    assert settings.lambda_environment("tutorial-items")["LOG_LEVEL"] == "DEBUG"


# Test: un nivel desconocido falla al sintetizar, no en la Lambda
def test_unknown_log_level_rejected():
    app = core.App(context={"logLevel": "verbose"})

    with pytest.raises(ValueError, match="verbose"):
        with_context_overrides(app, ITEMS_API)
