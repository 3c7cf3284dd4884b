"""Run the API with uvicorn (auto-reload in debug mode)."""
import uvicorn

from darpan.config import settings

if __name__ == "__main__":
    database = settings.db.url.split("@")[-1] if "@" in settings.db.url else settings.db.url
    print(f"Starting {settings.app_name} v{settings.version} ({settings.environment})")
    print(f"Database: {database}")
    print(f"OpenAI model: {settings.openai.model} (enrollment: {settings.openai.enrollment_model})")
    print(f"Auto-reload: {'Enabled' if settings.debug else 'Disabled'}")
    print("-" * 50)

    uvicorn.run(
        "darpan.api:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        reload_dirs=["darpan", "ai", "config"] if settings.debug else None,
        log_level=settings.logging.level.lower(),
    )
