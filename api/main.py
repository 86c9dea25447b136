from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import FeatureOption, HealthResponse, MetaFeaturesResponse, MetaSamplesResponse, SelectionModel
from microbiome.data import DashboardData, load_dashboard_data, sample_ids
from microbiome.errors import RecordNotFoundError
from microbiome.metrics_metadata import compute_metadata
from microbiome.metrics_sample import compute_sample
from microbiome.normalize import FEATURES, feature_label
from microbiome.selection import DashboardSelection, normalize_selection

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _selection_from_model(model: SelectionModel, data: DashboardData) -> DashboardSelection:
    raw = model.model_dump()
    return normalize_selection(raw, available_samples=sample_ids(data))


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def create_app(data: Optional[DashboardData] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # the dataset gates every endpoint; a failed load stops startup
        if app.state.data is None:
            app.state.data = load_dashboard_data()
        yield

    app = FastAPI(title="Navel Biodiversity API", version="0.1.0", lifespan=lifespan)
    app.state.data = data

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request):
        ctx: DashboardData = request.app.state.data
        return HealthResponse(status="ok", samples=len(ctx.samples), source=ctx.source)

    @app.get("/meta/samples", response_model=MetaSamplesResponse)
    def meta_samples(request: Request):
        return MetaSamplesResponse(samples=sample_ids(request.app.state.data))

    @app.get("/meta/features", response_model=MetaFeaturesResponse)
    def meta_features():
        return MetaFeaturesResponse(features=[FeatureOption(value=f, label=feature_label(f)) for f in FEATURES])

    @app.post("/metadata")
    def metadata(selection: SelectionModel, request: Request):
        try:
            ctx: DashboardData = request.app.state.data
            sel = _selection_from_model(selection, ctx)
            return _json(compute_metadata(sel, ctx))
        except Exception as exc:
            logger.exception("metadata failed")
            return _error(exc)

    @app.post("/sample")
    def sample(selection: SelectionModel, request: Request):
        try:
            ctx: DashboardData = request.app.state.data
            sel = _selection_from_model(selection, ctx)
            return _json(compute_sample(sel, ctx))
        except RecordNotFoundError as exc:
            return _error(exc, status_code=404)
        except Exception as exc:
            logger.exception("sample failed")
            return _error(exc)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
