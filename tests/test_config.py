from admin_console.config import Settings


def test_cors_origins_accept_comma_separated_env(monkeypatch) -> None:
    monkeypatch.setenv("ADMIN_CONSOLE_CORS_ORIGINS", "http://a.test, http://b.test,")

    settings = Settings()

    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_defaults_without_env(monkeypatch) -> None:
    monkeypatch.delenv("ADMIN_CONSOLE_CORS_ORIGINS", raising=False)
    monkeypatch.delenv("ADMIN_CONSOLE_MAX_SESSIONS", raising=False)

    settings = Settings()

    assert settings.cors_origins == ["http://localhost:5173", "http://127.0.0.1:5173"]
    assert settings.max_sessions == 100
    assert settings.invoice_filename == "invoice_slip.pdf"
