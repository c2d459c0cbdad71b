"""Order validation - the proposed order must be a bijection over the input set."""

import logging
from collections import Counter
from typing import Iterable, List, Sequence

from ..errors import (
    DuplicateFilenamesError,
    InvalidFilenamesError,
    MissingFilenamesError,
)
from ..schemas.ordering import OrderingResult

logger = logging.getLogger(__name__)


def check_bijection(valid_names: Sequence[str], order: Sequence[str]) -> None:
    """Check that ``order`` lists every name of ``valid_names`` exactly once.

    Foreign names are checked first. When they are found, names missing from
    the same order are reported on the same error.

    Args:
        valid_names: Input filenames (upload order, unique)
        order: Proposed order

    Raises:
        InvalidFilenamesError: Order contains names not in valid_names
        MissingFilenamesError: Order omits some of valid_names
        DuplicateFilenamesError: Order lists a name more than once
    """
    valid_set = set(valid_names)
    returned = list(order)
    returned_set = set(returned)

    invalid = _unique([name for name in returned if name not in valid_set])
    missing = [name for name in valid_names if name not in returned_set]

    if invalid:
        logger.error(f"Order contains {len(invalid)} unknown filenames: {invalid}")
        raise InvalidFilenamesError(
            invalid_names=invalid,
            valid_names=list(valid_names),
            returned_names=returned,
            missing_names=missing,
        )

    if missing:
        logger.error(f"Order is missing {len(missing)} filenames: {missing}")
        raise MissingFilenamesError(missing_names=missing, returned_names=returned)

    counts = Counter(returned)
    duplicates = _unique([name for name in returned if counts[name] > 1])
    if duplicates:
        logger.error(f"Order repeats filenames: {duplicates}")
        raise DuplicateFilenamesError(duplicate_names=duplicates, returned_names=returned)


def validate_order(valid_names: Sequence[str], result: OrderingResult) -> OrderingResult:
    """Validate a proposed ordering against the input filenames.

    Returns the same result unchanged when it is a bijection, so validating
    an already validated result is a no-op.

    Raises:
        OrderValidationError: See check_bijection
    """
    check_bijection(valid_names, result.order)
    logger.info(
        f"Order validated: {len(result.order)} pages, "
        f"confidence={result.confidence:.2f}, status={result.status}"
    )
    return result


def _unique(names: Iterable[str]) -> List[str]:
    seen = set()
    unique = []
    for name in names:
        if name not in seen:
            seen.add(name)
            unique.append(name)
    return unique
