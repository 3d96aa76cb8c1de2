# contractflow/repositories/contract_repo.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from contractflow.repositories.base import BaseRepository


class ContractRepository(BaseRepository):
    TABLE = "contracts"

    def __init__(self, sb):
        super().__init__(sb)

    # -------------------------------------------------
    # Write (always owner-scoped)
    # -------------------------------------------------
    def update_summary(
        self,
        *,
        contract_id: str,
        owner_id: str,
        ai_summary: Optional[str],
        summary_path: Optional[str],
    ) -> int:
        """
        Write the parsed summary onto the contract row.

        The filter is (id, owner_id), so a caller can never touch another
        owner's row. Returns the number of rows matched.
        summary_path is only written when an artifact exists.
        """
        payload: Dict[str, Any] = {
            "ai_summary": ai_summary,
            "updated_at": datetime.now(timezone.utc),
        }
        if summary_path is not None:
            payload["summary_path"] = summary_path

        res = (
            self.sb
            .table(self.TABLE)
            .update(self._encode(payload))
            .eq("id", contract_id)
            .eq("owner_id", owner_id)
            .execute()
        )
        return len(res.data or [])
