# pos_edge/api/v1/routes_codes.py
from fastapi import APIRouter, Depends

from pos_edge.api.v1.deps import get_code_generator
from pos_edge.domain.checkout.schemas import CodeOut, CodeRequest
from pos_edge.domain.codes.generator import CodeGenerator


router = APIRouter(prefix="/api/v1/codes", tags=["codes"])


@router.post("", response_model=CodeOut)
async def generate_code_endpoint(
    payload: CodeRequest,
    generator: CodeGenerator = Depends(get_code_generator),
):
    # advisory only: the unique constraint on insert has the last word
    value = await generator.generate(payload.namespace, payload.seed_text)
    return CodeOut(value=value)
