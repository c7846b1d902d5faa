# This project was developed with assistance from AI tools.
"""Shared data scope filtering for service queries.

Centralizes the DataScope -> SQL WHERE logic so that each resource service
applies the same tenant rules. The join_to_case parameter handles child
entities (links, reports, attachments) that reach Case through a join.
"""

from db import Case

from ..schemas.auth import DataScope


def apply_data_scope(stmt, scope: DataScope, *, join_to_case=None):
    """Apply data scope filtering to a SQLAlchemy query.

    Args:
        stmt: A SQLAlchemy select statement.
        scope: The caller's DataScope.
        join_to_case: ORM relationship attribute to join to reach Case
            (e.g., ``CaseLink.case``). Pass ``None`` when querying Case
            directly.

    Returns:
        The filtered statement.
    """
    if join_to_case is not None:
        stmt = stmt.join(join_to_case)
    if scope.organization_id is not None:
        stmt = stmt.where(Case.organization_id == scope.organization_id)
    if scope.consultant_id is not None:
        stmt = stmt.where(Case.consultant_id == scope.consultant_id)
    return stmt
