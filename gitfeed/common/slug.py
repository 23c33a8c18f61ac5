"""Repository slug utilities.

Repository identifiers returned by the search API are ``owner/name`` slugs.
They are URL path fragments, not filesystem paths, so they are validated here
rather than with ``pathlib``.
"""

from __future__ import annotations


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Parse a repository slug into owner and name.

    Parameters
    ----------
    slug:
        Repository slug in ``owner/name`` format.

    Returns
    -------
    tuple[str, str]
        ``(owner, name)``.

    Raises
    ------
    ValueError
        If the slug is not in ``owner/name`` format.

    Examples
    --------
    >>> parse_repo_slug("ReactiveX/RxSwift")
    ('ReactiveX', 'RxSwift')

    """
    if slug.count("/") != 1:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    owner, name = slug.split("/")
    if not owner.strip() or not name.strip():
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    return owner, name
