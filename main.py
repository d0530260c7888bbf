from fastapi import FastAPI
from mangum import Mangum

from hostrelay import HostRelay, VERSION
from dotenv import load_dotenv


load_dotenv()


def create_app() -> FastAPI:
    # Every path belongs to the proxy, so FastAPI's own doc routes stay off.
    app = FastAPI(
        title="hostrelay",
        version=VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    HostRelay().to_fastapi(app)
    return app


app = create_app()


handler = Mangum(app, lifespan="off")
