# pos_edge/domain/codes/generator.py
"""Human-readable identifiers: category codes, SKUs and order numbers.

Codes are derived from a snapshot of what already exists in the store, so two
terminals reading the same snapshot can produce the same value. The generator
narrows that window with an existence check and a random suffix, but the
unique constraints in the database stay the final authority: treat a
generated code as a proposal and be ready to regenerate when persisting it
fails with ``DuplicateCodeError``.
"""
import enum
import random
import re
from typing import Iterable, Optional, Protocol, Sequence

import structlog

from pos_edge.core.errors import RepositoryUnavailableError

logger = structlog.get_logger(__name__)

# no 0/O or 1/I
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
FALLBACK_CATEGORY_CODE = "GEN"
ORDER_PREFIX = "OS"
SKU_SEQUENCE_WIDTH = 3
ORDER_SEQUENCE_WIDTH = 4

_NON_LETTERS = re.compile(r"[^a-zA-Z]")
_CATEGORY_CODE = re.compile(r"^[A-Z]{1,3}[0-9]*$")


class CodeNamespace(str, enum.Enum):
    CATEGORY = "category"
    SKU = "sku"
    ORDER = "order"


class CodeRepository(Protocol):
    async def find_codes_by_prefix(self, namespace: CodeNamespace, prefix: str) -> Sequence[str]:
        ...

    async def exists_code(self, namespace: CodeNamespace, candidate: str) -> bool:
        ...


def category_code_base(name: Optional[str]) -> str:
    """First three ASCII letters of ``name``, upper-cased, or ``GEN``."""
    letters = _NON_LETTERS.sub("", name or "")
    return letters[:3].upper() or FALLBACK_CATEGORY_CODE


def next_category_code(base: str, existing: Iterable[str]) -> str:
    """``base`` if free, otherwise the first of ``base2``, ``base3``... not taken."""
    taken = set(existing)
    candidate = base
    counter = 1
    while candidate in taken:
        counter += 1
        candidate = f"{base}{counter}"
    return candidate


def random_code(length: int = 4, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return "".join(rng.choice(CODE_ALPHABET) for _ in range(length))


def max_sequence(codes: Iterable[str], prefix: str) -> int:
    """Highest numeric second segment among ``codes`` starting with ``prefix-``."""
    highest = 0
    head = f"{prefix}-".upper()
    for code in codes:
        if not code.upper().startswith(head):
            continue
        parts = code.split("-")
        if len(parts) < 2 or not parts[1].isdigit():
            continue
        highest = max(highest, int(parts[1]))
    return highest


def next_sequence(codes: Iterable[str], prefix: str, width: int) -> str:
    return str(max_sequence(codes, prefix) + 1).zfill(width)


def sku_prefix(seed_text: Optional[str]) -> str:
    """Category prefix for a SKU: a ready-made code as-is, else derived from a name."""
    text = (seed_text or "").strip().upper()
    if _CATEGORY_CODE.match(text):
        return text
    return category_code_base(seed_text)


class CodeGenerator:
    """Builds unique codes on top of a ``CodeRepository``.

    Holds no state between calls besides its collaborators, so one instance
    can serve concurrent requests.
    """

    def __init__(
        self,
        repository: CodeRepository,
        rng: Optional[random.Random] = None,
        max_attempts: int = 10,
        strict: bool = False,
    ):
        self.repository = repository
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts
        self.strict = strict

    async def generate(self, namespace, seed_text: str = "") -> str:
        namespace = CodeNamespace(namespace)
        if namespace is CodeNamespace.CATEGORY:
            candidate = await self._category_candidate(seed_text)
        elif namespace is CodeNamespace.SKU:
            candidate = await self._sku_candidate(seed_text)
        else:
            candidate = await self._order_candidate()
        return await self.ensure_unique(namespace, candidate)

    async def lookup_max_sequence(self, namespace: CodeNamespace, prefix: str) -> int:
        codes = await self._find(namespace, f"{prefix}-")
        return max_sequence(codes, prefix)

    async def _category_candidate(self, seed_text: str) -> str:
        base = category_code_base(seed_text)
        existing = await self._find(CodeNamespace.CATEGORY, base)
        return next_category_code(base, existing)

    async def _sku_candidate(self, seed_text: str) -> str:
        prefix = sku_prefix(seed_text)
        existing = await self._find(CodeNamespace.SKU, f"{prefix}-")
        sequence = next_sequence(existing, prefix, SKU_SEQUENCE_WIDTH)
        return f"{prefix}-{sequence}-{random_code(4, self.rng)}"

    async def _order_candidate(self) -> str:
        existing = await self._find(CodeNamespace.ORDER, f"{ORDER_PREFIX}-")
        sequence = next_sequence(existing, ORDER_PREFIX, ORDER_SEQUENCE_WIDTH)
        return f"{ORDER_PREFIX}-{sequence}"

    async def ensure_unique(self, namespace: CodeNamespace, candidate: str) -> str:
        """Re-check ``candidate`` and suffix it until it is free or attempts run out.

        After ``max_attempts`` the last value is returned even if it still
        collides.
        """
        current = candidate
        attempts = 0
        while await self._exists(namespace, current):
            if attempts >= self.max_attempts:
                logger.warning(
                    "code_attempts_exhausted",
                    namespace=namespace.value,
                    candidate=current,
                    attempts=attempts,
                )
                break
            logger.info("code_collision", namespace=namespace.value, candidate=current)
            current = f"{candidate}-{random_code(2, self.rng)}"
            attempts += 1
        return current

    async def _find(self, namespace: CodeNamespace, prefix: str) -> Sequence[str]:
        try:
            return await self.repository.find_codes_by_prefix(namespace, prefix)
        except RepositoryUnavailableError as exc:
            if self.strict:
                raise
            logger.warning(
                "code_lookup_failed",
                namespace=namespace.value,
                prefix=prefix,
                error=str(exc),
            )
            return []

    async def _exists(self, namespace: CodeNamespace, candidate: str) -> bool:
        try:
            return await self.repository.exists_code(namespace, candidate)
        except RepositoryUnavailableError as exc:
            if self.strict:
                raise
            logger.warning(
                "code_exists_check_failed",
                namespace=namespace.value,
                candidate=candidate,
                error=str(exc),
            )
            return False
