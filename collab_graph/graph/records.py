"""
collab_graph/graph/records.py - Raw edge records to typed Edge objects.

Snapshot resources are arrays of JSON records:

    {source: person_id, target: project_id, num_commits, num_issues,
     internal, support, encryption}

Records are normalized through a pandas DataFrame so that missing columns,
missing values and numeric strings are all handled in one place. Records
without a source or target are dropped; they are never fatal.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

RECORD_COLUMNS = [
    "source",
    "target",
    "num_commits",
    "num_issues",
    "internal",
    "support",
    "encryption",
]


@dataclass
class Edge:
    """
    A collaboration record linking a person to a project.

    Fields:
        person_id:      Node ID of the person (record ``source``).
        project_id:     Node ID of the project (record ``target``).
        num_commits:    Commits by the person in the project.
        num_issues:     Issues handled by the person in the project.
        internal:       Person belongs to the organization.
        support:        Project is a support team / the person works in one.
        encryption:     Encryption level of the person's name (0 = plaintext).
        last_active_at: Timelapse activity stamp; None outside a timelapse.
    """
    person_id: str
    project_id: str
    num_commits: int = 0
    num_issues: int = 0
    internal: bool = False
    support: bool = False
    encryption: int = 0
    last_active_at: pd.Timestamp | None = None

    @property
    def source(self) -> str:
        return self.person_id

    @property
    def target(self) -> str:
        return self.project_id


def endpoint_id(value: Any) -> str | None:
    """
    Return the node ID referenced by an edge endpoint.

    An endpoint is either a bare ID or something carrying an ``id``: a
    mapping (``{"id": ...}``) or an object with an ``id`` attribute (a Node).
    Missing values (None, NaN, empty strings) yield None.
    """
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, Mapping):
        return endpoint_id(value.get("id"))
    if hasattr(value, "id"):
        return endpoint_id(value.id)
    text = str(value)
    return text if text else None


def edges_from_records(records: Iterable[Mapping[str, Any] | Edge]) -> list[Edge]:
    """
    Normalize raw snapshot records into fresh Edge objects.

    Edge instances in the input are copied unchanged (without their activity
    stamp). Mapping records go through a DataFrame:

        - source/target resolved with endpoint_id(); rows missing either
          are skipped.
        - num_commits, num_issues, encryption coerced to int (invalid -> 0).
        - internal, support coerced to bool (missing -> False).

    Returns:
        List of Edge objects in input order.
    """
    rows: list[Mapping[str, Any]] = []
    edges: list[Edge] = []
    for record in records:
        if isinstance(record, Edge):
            rows.append(
                {
                    "source": record.person_id,
                    "target": record.project_id,
                    "num_commits": record.num_commits,
                    "num_issues": record.num_issues,
                    "internal": record.internal,
                    "support": record.support,
                    "encryption": record.encryption,
                }
            )
        else:
            rows.append(dict(record))

    if not rows:
        return edges

    # object dtype keeps integer IDs as ints when some rows lack an endpoint
    df = pd.DataFrame(rows, dtype=object).reindex(columns=RECORD_COLUMNS)

    df["source"] = df["source"].map(endpoint_id)
    df["target"] = df["target"].map(endpoint_id)
    valid = df["source"].notna() & df["target"].notna()
    skipped = int((~valid).sum())
    if skipped:
        logger.debug("Skipping %d edge records without a source or target.", skipped)
    df = df[valid].copy()

    for column in ("num_commits", "num_issues", "encryption"):
        df[column] = pd.to_numeric(df[column], errors="coerce").fillna(0).astype(int)
    for column in ("internal", "support"):
        df[column] = df[column].where(df[column].notna(), False).astype(bool)

    for row in df.itertuples(index=False):
        edges.append(
            Edge(
                person_id=row.source,
                project_id=row.target,
                num_commits=int(row.num_commits),
                num_issues=int(row.num_issues),
                internal=bool(row.internal),
                support=bool(row.support),
                encryption=int(row.encryption),
            )
        )
    return edges
