"""Update-or-create for entities whose remote record may have vanished."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from proxykeeper.domain.errors import EntityNotFoundError

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)


def upsert[T](
    update: Callable[[], T],
    create: Callable[[], T],
    *,
    description: str = "entity",
) -> T:
    """Run ``update``; when it reports the entity missing, run ``create`` instead.

    ``create`` must reuse the identifier ``update`` targeted, so local state keeps
    pointing at the same entity. Failures other than not-found propagate from
    ``update`` unchanged.
    """

    try:
        return update()
    except EntityNotFoundError as exc:
        log.info("%s missing on update (%s), recreating under the same id", description, exc)
    return create()


__all__ = ["upsert"]
