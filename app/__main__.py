import uvicorn

from app.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    print(f"[HTTP][server_start] host={settings.HOST} port={settings.PORT}", flush=True)
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
