from __future__ import annotations

import logging
import math
from typing import Literal

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from pivot_api.schemas import MetaFieldsResponse, MetaListResponse, PivotConfigModel, PivotRequest, RecordsModel
from pivot_core.compiler import compile_pivot
from pivot_core.config import PivotConfig, normalize_config, validate_config
from pivot_core.errors import InputError
from pivot_core.export import flatten_result, to_csv_bytes, to_xlsx_bytes
from pivot_core.records import field_names, unique_values


APP_TITLE = "Pivot Engine API"
APP_VERSION = "0.1.0"
CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]
EXPORT_BASENAME = "pivot_export"

app = FastAPI(title=APP_TITLE, version=APP_VERSION)
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _config_from_model(model: PivotConfigModel) -> PivotConfig:
    return validate_config(normalize_config(model.model_dump()))


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.post("/pivot")
def pivot(request: PivotRequest):
    try:
        config = _config_from_model(request.config)
        result = compile_pivot(request.records, config)
        return _json(result.to_dict())
    except InputError as exc:
        return _error(422, exc)
    except Exception as exc:
        logger.exception("pivot failed")
        return _error(500, exc)


@app.post("/pivot/export")
def pivot_export(request: PivotRequest, format: Literal["csv", "xlsx"] = Query(default="csv")):
    try:
        config = _config_from_model(request.config)
        grid = flatten_result(compile_pivot(request.records, config))
    except InputError as exc:
        return _error(422, exc)
    except Exception as exc:
        logger.exception("pivot_export failed")
        return _error(500, exc)

    if format == "xlsx":
        content = to_xlsx_bytes(grid)
        media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    else:
        content = to_csv_bytes(grid)
        media_type = "text/csv"
    filename = f"{EXPORT_BASENAME}.{format}"
    return Response(content=content, media_type=media_type, headers={"Content-Disposition": f"attachment; filename={filename}"})


@app.post("/meta/fields")
def meta_fields(body: RecordsModel):
    try:
        return _json(MetaFieldsResponse(fields=field_names(body.records)).model_dump())
    except Exception as exc:
        logger.exception("meta_fields failed")
        return _error(500, exc)


@app.post("/meta/values")
def meta_values(body: RecordsModel, field: str = Query(...)):
    try:
        return _json(MetaListResponse(values=unique_values(body.records, field)).model_dump())
    except Exception as exc:
        logger.exception("meta_values failed")
        return _error(500, exc)
