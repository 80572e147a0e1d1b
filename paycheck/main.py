from prometheus_fastapi_instrumentator import Instrumentator

from paycheck.core.config import settings
from paycheck.core.logging import configure_logging
from . import app as paycheck_app

configure_logging()
app = paycheck_app
instrumentator = Instrumentator()


@app.on_event("startup")
async def _metrics() -> None:
    instrumentator.instrument(app).expose(app)


def run() -> None:
    import uvicorn

    uvicorn.run("paycheck.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
