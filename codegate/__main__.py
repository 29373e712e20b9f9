import uvicorn

from codegate import config


def main() -> None:
    uvicorn.run("codegate.main:app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
