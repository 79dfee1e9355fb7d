from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from numbervault.core.modules.number.models import NumberView
from numbervault.web.deps import AppDep
from numbervault.web.openapi import ErrorResponse

router = APIRouter(tags=["numbers"])


class ValueResponse(BaseModel):
    value: int | None = Field(..., description="Record value, null when there is no such record")


class SavedAtResponse(BaseModel):
    saved_at: datetime | None = Field(
        ..., alias="savedAt", description="Record timestamp, null when there is no such record"
    )

    model_config = ConfigDict(populate_by_name=True)


@router.post(
    "/numbers",
    summary="Create number",
    description="Save a random 8-digit number stamped with the next serial.",
    operation_id="createNumber",
    status_code=201,
    responses={
        201: {"description": "Number saved"},
        409: {"model": ErrorResponse, "description": "Serial conflict, safe to retry"},
    },
)
async def create_number(app: AppDep) -> NumberView:
    return await app.create_number()


@router.get(
    "/numbers/last",
    summary="Most recent value",
    operation_id="getLastNumber",
)
async def get_last_value(app: AppDep) -> ValueResponse:
    number = await app.get_last_number()
    return ValueResponse(value=number.value if number else None)


@router.get(
    "/numbers/last/datetime",
    summary="Most recent timestamp",
    operation_id="getLastNumberDatetime",
)
async def get_last_datetime(app: AppDep) -> SavedAtResponse:
    number = await app.get_last_number()
    return SavedAtResponse(saved_at=number.saved_at if number else None)


@router.get(
    "/numbers/second",
    summary="Second most recent value",
    operation_id="getSecondLastNumber",
)
async def get_second_value(app: AppDep) -> ValueResponse:
    number = await app.get_second_last_number()
    return ValueResponse(value=number.value if number else None)


@router.get(
    "/numbers/second/datetime",
    summary="Second most recent timestamp",
    operation_id="getSecondLastNumberDatetime",
)
async def get_second_datetime(app: AppDep) -> SavedAtResponse:
    number = await app.get_second_last_number()
    return SavedAtResponse(saved_at=number.saved_at if number else None)


@router.get(
    "/numbers/all",
    summary="All numbers",
    description="Get every record, newest first.",
    operation_id="listNumbers",
)
async def list_numbers(app: AppDep) -> list[NumberView]:
    return await app.get_all_numbers()
