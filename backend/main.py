"""
ERP Lens Backend - ERP Spreadsheet Analysis API
Upload ERP exports, repair and type the data, and turn LLM chart proposals into chart-ready series
"""

import difflib
import json
from time import perf_counter
from typing import Any, Optional

import openai
from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

import config

# Import models
from models import (
    AggregateRequest, AnalyzeRequest, AnalyzeResponse, ChartConfig, ChartSeries,
    CleanRequest, CleanResponse, ColumnSummary, DatasetStatistics, DrillDownRequest,
    DrillDownResponse, SampleResponse, UploadResponse,
)

# Import storage
from storage import DATASETS, DatasetInfo, cleanup_expired, get_dataset, store_dataset

# Import ingestion and insights
from ingestion import merge_datasets, parse_upload
from insights import drop_unknown_charts, generate_insights

# Import core
from erp_core import (
    ReductionMode,
    aggregate_rows,
    classify_columns,
    clean_dataset_with_report,
    compute_dataset_statistics,
    detect_reduction_mode,
    drill_down,
    format_compact_number,
    format_number,
    smart_sample,
)
from erp_core.aggregation import is_date_axis
from erp_core.values import as_text, is_blank

app = FastAPI(
    title="ERP Lens API",
    description="ERP spreadsheet cleaning, profiling and chart aggregation",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

COLUMN_TYPE_SAMPLE_ROWS = 50
MAX_SAMPLE_LIMIT = 1000


# ============================================================================
# Helper Functions
# ============================================================================

def get_column_summary(rows: list[dict[str, Any]], col: str, col_type: str) -> ColumnSummary:
    """Generate column summary for API response"""
    unique_vals = list(dict.fromkeys(as_text(r.get(col)) for r in rows if not is_blank(r.get(col))))
    sample_vals = sorted(unique_vals[:20], key=str.lower)
    return ColumnSummary(
        name=col,
        column_type=col_type,
        unique_count=len(unique_vals),
        sample_values=sample_vals
    )


def validate_columns(headers: list[str], cols: list[str]) -> tuple[bool, list[str], dict[str, list[str]]]:
    """Validate that columns exist, suggest alternatives if not"""
    missing = [c for c in cols if c not in headers]
    if not missing:
        return True, [], {}
    suggestions = {c: difflib.get_close_matches(c, headers, n=3, cutoff=0.4) for c in missing}
    return False, missing, suggestions


def _require_columns(ds: DatasetInfo, cols: list[str]) -> None:
    valid, missing, suggestions = validate_columns(ds.headers, cols)
    if not valid:
        msg = "; ".join(f"'{c}' not found, try: {suggestions.get(c, [])}" for c in missing)
        raise HTTPException(status_code=400, detail=msg)


def _y_axis_label(mode: str, data_key: str) -> Optional[str]:
    if mode == ReductionMode.COUNT:
        return "Count of Records"
    if mode == ReductionMode.AVERAGE:
        return f"Average {data_key}"
    return None


def build_chart_series(rows: list[dict[str, Any]], x_axis_key: str, data_key: str, chart: Optional[ChartConfig] = None) -> ChartSeries:
    """Aggregate one chart and attach tooltip-ready labels to every point"""
    points = aggregate_rows(rows, x_axis_key, data_key)
    mode = detect_reduction_mode(rows, data_key)
    for point in points:
        point["formatted_value"] = format_number(point["value"])
        point["compact_value"] = format_compact_number(point["value"])

    return ChartSeries(
        data=points,
        x_axis_key=x_axis_key,
        data_key=data_key,
        aggregation=mode,
        is_chronological=is_date_axis(rows, x_axis_key) if rows else False,
        y_axis_label=_y_axis_label(mode, data_key),
        title=chart.title if chart else f"{data_key} by {x_axis_key}",
        chart_type=chart.type if chart else None,
        chart_id=chart.id if chart else None,
        row_count=len(points),
    )


def profile_rows(rows: list[dict[str, Any]]) -> tuple[dict[str, str], dict]:
    """Column types over the first rows, and full-scope statistics reusing them"""
    column_types = classify_columns(rows, sample_size=COLUMN_TYPE_SAMPLE_ROWS)
    return column_types, compute_dataset_statistics(rows, column_types=column_types)


def print_pipeline_timing(endpoint: str, durations: dict[str, float]) -> None:
    """Print formatted execution timings for ingestion pipeline phases."""
    print(f"\n=== {endpoint} Pipeline Timing ===")
    print(f"File Ingestion: {durations['file_ingestion']:.2f}s")
    print(f"Data Cleaning: {durations['data_cleaning']:.2f}s")
    print(f"Data Profiling: {durations['data_profiling']:.2f}s")
    print(f"Total Pipeline: {durations['total']:.2f}s")
    print("=" * (len(endpoint) + 20))


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/")
async def root():
    return {"status": "ok", "version": "1.0.0"}


@app.get("/validate/{dataset_id}")
async def validate_dataset(dataset_id: str):
    """Check if a dataset ID is still valid (exists in memory)"""
    cleanup_expired()
    if dataset_id in DATASETS:
        ds = DATASETS[dataset_id]
        ds.touch()
        return {"valid": True, "filenames": ds.filenames, "row_count": len(ds.rows)}
    return {"valid": False}


@app.post("/upload", response_model=UploadResponse)
async def upload_files(files: list[UploadFile] = File(...)):
    if not files:
        raise HTTPException(status_code=400, detail="Please upload at least one Excel or CSV file.")

    try:
        endpoint_start = perf_counter()
        t0 = perf_counter()
        parsed = []
        for upload in files:
            content = await upload.read()
            try:
                parsed.append(parse_upload(upload.filename or "", content))
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
        raw_rows = merge_datasets(parsed)
        t1 = perf_counter()

        # The raw rows stay untouched; the cleaner works on copies.
        t2 = perf_counter()
        rows, cleaning_actions = clean_dataset_with_report(raw_rows, current_year=config.ERP_CURRENT_YEAR)
        t3 = perf_counter()

        t4 = perf_counter()
        column_types, statistics = profile_rows(rows)
        t5 = perf_counter()

        ds_info = DatasetInfo(
            raw_rows=raw_rows,
            rows=rows,
            filenames=[f.filename or "" for f in files],
            cleaning_actions=cleaning_actions,
            column_types=column_types,
            statistics=statistics,
        )
        store_dataset(ds_info)

        t6 = perf_counter()
        print_pipeline_timing("/upload", {
            "file_ingestion": t1 - t0,
            "data_cleaning": t3 - t2,
            "data_profiling": t5 - t4,
            "total": t6 - endpoint_start,
        })

        return UploadResponse(
            dataset_id=ds_info.id,
            filenames=ds_info.filenames,
            row_count=len(rows),
            columns=[get_column_summary(rows, c, t) for c, t in column_types.items()],
            cleaning_actions=cleaning_actions,
            statistics=DatasetStatistics(**statistics),
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/clean", response_model=CleanResponse)
async def reclean_dataset(request: CleanRequest):
    """Re-run the cleaner from the raw upload, e.g. with a different fallback year"""
    ds = get_dataset(request.dataset_id)
    current_year = request.current_year if request.current_year is not None else config.ERP_CURRENT_YEAR

    rows, cleaning_actions = clean_dataset_with_report(ds.raw_rows, current_year=current_year)
    column_types, statistics = profile_rows(rows)
    ds.rows = rows
    ds.cleaning_actions = cleaning_actions
    ds.column_types = column_types
    ds.statistics = statistics

    return CleanResponse(
        dataset_id=ds.id,
        row_count=len(rows),
        cleaning_actions=cleaning_actions,
        statistics=DatasetStatistics(**statistics),
    )


@app.get("/datasets/{dataset_id}/statistics", response_model=DatasetStatistics)
async def dataset_statistics(dataset_id: str):
    ds = get_dataset(dataset_id)
    return DatasetStatistics(**ds.statistics)


@app.get("/datasets/{dataset_id}/sample", response_model=SampleResponse)
async def dataset_sample(
    dataset_id: str,
    limit: int = Query(config.SAMPLE_ROW_LIMIT, ge=1, le=MAX_SAMPLE_LIMIT),
    seed: Optional[int] = None,
):
    """Representative head / random / tail preview of the cleaned rows"""
    ds = get_dataset(dataset_id)
    return SampleResponse(
        dataset_id=ds.id,
        total_rows=len(ds.rows),
        limit=limit,
        data=smart_sample(ds.rows, limit, seed=seed),
    )


@app.post("/aggregate", response_model=ChartSeries)
async def aggregate_endpoint(request: AggregateRequest):
    ds = get_dataset(request.dataset_id)
    cols = [request.x_axis_key, request.data_key]
    if request.drill_down:
        cols.append(request.drill_down.column)
    _require_columns(ds, cols)

    rows = ds.rows
    if request.drill_down:
        rows = drill_down(rows, request.drill_down.column, request.drill_down.value)
        if not rows:
            raise HTTPException(status_code=400, detail="No data matches drill-down.")

    return build_chart_series(rows, request.x_axis_key, request.data_key)


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze_endpoint(request: AnalyzeRequest):
    if not config.openai_api_key():
        raise HTTPException(status_code=500, detail="OpenAI API key not configured.")

    ds = get_dataset(request.dataset_id)
    t0 = perf_counter()
    try:
        result, context = generate_insights(
            ds.rows,
            user_prompt=request.user_prompt,
            history=request.history,
            statistics=ds.statistics,
        )
    except (json.JSONDecodeError, ValidationError) as e:
        raise HTTPException(status_code=502, detail=f"AI returned an unusable analysis: {e}")
    except (openai.OpenAIError, RuntimeError) as e:
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")
    print(f"LLM Insight Generation Time: {perf_counter() - t0:.2f}s")

    result, warnings = drop_unknown_charts(result, ds.headers)
    charts = [build_chart_series(ds.rows, c.x_axis_key, c.data_key, chart=c) for c in result.charts]

    return AnalyzeResponse(
        analysis=result,
        charts=charts,
        context_rows=len(context["rows"]),
        warnings=warnings or None,
    )


@app.post("/drilldown", response_model=DrillDownResponse)
async def drilldown_endpoint(request: DrillDownRequest):
    """Filter to one category value and re-aggregate every chart on the subset"""
    ds = get_dataset(request.dataset_id)
    _require_columns(ds, [request.column])

    filtered = drill_down(ds.rows, request.column, request.value)
    if not filtered:
        raise HTTPException(status_code=400, detail="No data matches drill-down.")

    charts = []
    for chart in request.charts:
        valid, missing, _ = validate_columns(ds.headers, [chart.x_axis_key, chart.data_key])
        if not valid:
            print(f"Drill-down skipped chart '{chart.title}': unknown column(s) {missing}")
            continue
        charts.append(build_chart_series(filtered, chart.x_axis_key, chart.data_key, chart=chart))

    return DrillDownResponse(
        column=request.column,
        value=request.value,
        total_rows=len(filtered),
        statistics=DatasetStatistics(**compute_dataset_statistics(filtered, column_types=ds.column_types)),
        charts=charts,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
