from __future__ import annotations

import json
from typing import Iterable, Optional

from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.requests import Request

from ..exceptions import PlanValidationError
from .models import PlanCreate

FILE_FIELD = "file"
LIST_FIELDS = ("constructionType", "outdoorFeatures", "indoorFeatures")


def split_list_field(values: Iterable[str]) -> list[str]:
    """Accept a JSON array string, a comma separated string, or repeated form fields."""
    items: list[str] = []
    for raw in values:
        raw = raw.strip()
        if not raw:
            continue
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except ValueError:
                parsed = None
            if isinstance(parsed, list):
                items.extend(str(v).strip() for v in parsed if str(v).strip())
                continue
        items.extend(part.strip() for part in raw.split(",") if part.strip())
    return items


async def read_upload_form(request: Request) -> tuple[PlanCreate, Optional[UploadFile]]:
    """Parse a multipart plan upload into validated metadata and the file part.

    Blank fields are dropped so model defaults apply. Nothing is written to the
    upload root here.
    """
    form = await request.form()
    data: dict[str, object] = {}
    upload: Optional[UploadFile] = None

    for key in dict.fromkeys(form.keys()):
        if key == FILE_FIELD:
            value = form.get(FILE_FIELD)
            upload = value if isinstance(value, UploadFile) else None
            continue
        values = [v for v in form.getlist(key) if isinstance(v, str)]
        if key in LIST_FIELDS:
            data[key] = split_list_field(values)
        elif values and values[-1].strip():
            data[key] = values[-1].strip()

    try:
        metadata = PlanCreate.model_validate(data)
    except ValidationError as exc:
        raise PlanValidationError.from_pydantic(exc.errors()) from exc
    return metadata, upload
