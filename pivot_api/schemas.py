from __future__ import annotations

from typing import Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field


FieldValueModel = Union[bool, float, str, None]
FilterValueModel = Union[bool, float, str]


class FilterConditionModel(BaseModel):
    field: str
    operator: Literal["in", "eq", "neq", "gt", "gte", "lt", "lte", "between"] = "in"
    values: List[FilterValueModel] = Field(default_factory=list)
    val1: Optional[Union[float, str]] = None
    val2: Optional[Union[float, str]] = None


class CustomBucketModel(BaseModel):
    id: str
    label: str
    filters: List[FilterConditionModel] = Field(default_factory=list)


class PivotValueModel(BaseModel):
    id: str
    field: str
    statistic: Literal["sum", "count", "avg", "min", "max", "median", "distinctCount"] = Field(
        default="sum", validation_alias=AliasChoices("statistic", "aggregator")
    )


class PivotConfigModel(BaseModel):
    rows: List[CustomBucketModel] = Field(default_factory=list, validation_alias=AliasChoices("rows", "customRows"))
    columns: List[CustomBucketModel] = Field(
        default_factory=list, validation_alias=AliasChoices("columns", "customCols")
    )
    values: List[PivotValueModel] = Field(default_factory=list)
    filters: Dict[str, List[FilterValueModel]] = Field(default_factory=dict)


class RecordsModel(BaseModel):
    records: List[Dict[str, FieldValueModel]] = Field(default_factory=list)


class PivotRequest(RecordsModel):
    config: PivotConfigModel = Field(default_factory=PivotConfigModel)


class MetaFieldsResponse(BaseModel):
    fields: List[str]


class MetaListResponse(BaseModel):
    values: List[str]
