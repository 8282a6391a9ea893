import pytest

from comichub.common.services.order_service import OrderService
from comichub.common.services.order_store import InMemoryOrderStore
from comichub.config import ComicHubConfig
from comichub.services import MockPaymentGateway, StripePaymentGateway, build_payment_gateway


ENV_KEYS = [
    "DATABASE_URL",
    "SECRET_KEY",
    "LOG_LEVEL",
    "PAYMENT_PROVIDER",
    "STRIPE_SECRET_KEY",
    "PAYMENT_WEBHOOK_SECRET",
    "STRIPE_WEBHOOK_SECRET",
    "APP_BASE_URL",
    "CURRENCY",
    "ADMIN_USERNAME",
    "ADMIN_PASSWORD",
    "SEED_DEMO_DATA",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        # setenv first so anything load_dotenv writes is undone at teardown
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults(clean_env):
    cfg = ComicHubConfig.load()
    assert cfg.payment_provider == "mock"
    assert cfg.database_url == "sqlite:///data/comichub.db"
    assert cfg.app_base_url == "http://localhost:9002"
    assert cfg.webhook_secret == ""
    assert cfg.seed_demo_data is False


def test_environment_overrides(clean_env):
    clean_env.setenv("PAYMENT_PROVIDER", "Stripe")
    clean_env.setenv("STRIPE_SECRET_KEY", "sk_test_x")
    clean_env.setenv("STRIPE_WEBHOOK_SECRET", "whsec_x")
    clean_env.setenv("APP_BASE_URL", "shop.example.com/")
    clean_env.setenv("LOG_LEVEL", "debug")
    clean_env.setenv("SEED_DEMO_DATA", "yes")

    cfg = ComicHubConfig.load()

    assert cfg.payment_provider == "stripe"
    assert cfg.webhook_secret == "whsec_x"
    assert cfg.app_base_url == "https://shop.example.com"
    assert cfg.log_level == "DEBUG"
    assert cfg.seed_demo_data is True


def test_dotenv_file_is_read(clean_env, tmp_path):
    (tmp_path / ".env").write_text("PAYMENT_WEBHOOK_SECRET=whsec_from_file\n", encoding="utf-8")
    assert ComicHubConfig.load().webhook_secret == "whsec_from_file"


@pytest.mark.parametrize("kwargs", [
    {"payment_provider": "paypal"},
    {"log_level": "LOUD"},
    {"currency": "dollars"},
])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        ComicHubConfig(**kwargs)


def test_gateway_selected_from_config():
    orders = OrderService(InMemoryOrderStore())
    assert isinstance(build_payment_gateway(ComicHubConfig(), orders), MockPaymentGateway)
    stripe_cfg = ComicHubConfig(payment_provider="stripe", stripe_secret_key="sk_test_x")
    assert isinstance(build_payment_gateway(stripe_cfg, orders), StripePaymentGateway)
    with pytest.raises(ValueError):
        build_payment_gateway(ComicHubConfig(payment_provider="stripe"), orders)
