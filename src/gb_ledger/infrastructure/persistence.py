"""LedgerRepository: concrete implementation of LedgerRepositoryProtocol.

Balances live in ``group_scores``; every engine-driven mutation also appends
a row to ``point_ledger_entries``. All mutations are keyed increments or
decrements via PostgreSQL UPDATE ... RETURNING, never read-modify-write.
A debit that returns 0 rows means the balance was insufficient.

Transaction ownership: the CALLER (application service) commits or rolls
back. Nothing here commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.enums import LedgerEntryType
from src.gb_common.errors import InternalError, NotAMemberError
from src.gb_common.id_generator import generate_id
from src.gb_ledger.domain.models import GroupScore, LedgerEntry

_SCORE_COLUMNS = "id, group_id, user_id, total_points, initial_points, created_at, updated_at"

_GET_SCORE_SQL = text(f"""
    SELECT {_SCORE_COLUMNS}
    FROM group_scores
    WHERE group_id = :group_id AND user_id = :user_id
""")

_INSERT_SCORE_SQL = text(f"""
    INSERT INTO group_scores (id, group_id, user_id, total_points, initial_points)
    VALUES (:id, :group_id, :user_id, :initial_points, :initial_points)
    RETURNING {_SCORE_COLUMNS}
""")

_INSERT_SCORE_IF_ABSENT_SQL = text(f"""
    INSERT INTO group_scores (id, group_id, user_id, total_points, initial_points)
    VALUES (:id, :group_id, :user_id, :initial_points, :initial_points)
    ON CONFLICT (group_id, user_id) DO NOTHING
    RETURNING {_SCORE_COLUMNS}
""")

_ADJUST_SQL = text(f"""
    UPDATE group_scores
    SET total_points = total_points + :delta,
        updated_at = NOW()
    WHERE group_id = :group_id AND user_id = :user_id
    RETURNING {_SCORE_COLUMNS}
""")

# Balance check and decrement in one statement: two concurrent stakes can
# never both pass the check against the same points.
_DEBIT_SQL = text(f"""
    UPDATE group_scores
    SET total_points = total_points - :amount,
        updated_at = NOW()
    WHERE group_id = :group_id
      AND user_id = :user_id
      AND total_points >= :amount
    RETURNING {_SCORE_COLUMNS}
""")

_DELETE_SCORE_SQL = text("""
    DELETE FROM group_scores
    WHERE group_id = :group_id AND user_id = :user_id
""")

_INSERT_ENTRY_SQL = text("""
    INSERT INTO point_ledger_entries
        (group_id, user_id, entry_type, amount, balance_after,
         reference_type, reference_id)
    VALUES
        (:group_id, :user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id)
    RETURNING id, group_id, user_id, entry_type, amount, balance_after,
              reference_type, reference_id, created_at
""")

_LIST_ENTRIES_SQL = text("""
    SELECT id, group_id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, created_at
    FROM point_ledger_entries
    WHERE group_id = :group_id
      AND user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_score(row: object) -> GroupScore:
    return GroupScore(
        id=row.id,  # type: ignore[attr-defined]
        group_id=row.group_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        total_points=float(row.total_points),  # type: ignore[attr-defined]
        initial_points=row.initial_points,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_entry(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        group_id=row.group_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=float(row.amount),  # type: ignore[attr-defined]
        balance_after=float(row.balance_after),  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class LedgerRepository:
    async def get_balance(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> GroupScore | None:
        result = await db.execute(_GET_SCORE_SQL, {"group_id": group_id, "user_id": user_id})
        row = result.fetchone()
        return _row_to_score(row) if row is not None else None

    async def create_balance(
        self, db: AsyncSession, group_id: str, user_id: str, initial_points: int
    ) -> GroupScore:
        """Insert the ledger row for a new member and journal the grant.

        A duplicate (group_id, user_id) surfaces as IntegrityError; callers
        check membership first.
        """
        result = await db.execute(
            _INSERT_SCORE_SQL,
            {
                "id": generate_id(),
                "group_id": group_id,
                "user_id": user_id,
                "initial_points": initial_points,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Score insert returned no rows: this should never happen")
        score = _row_to_score(row)
        await self.write_entry(
            db, group_id, user_id, LedgerEntryType.INITIAL_GRANT.value,
            initial_points, score.total_points,
        )
        return score

    async def ensure_balance(
        self, db: AsyncSession, group_id: str, user_id: str, initial_points: int
    ) -> GroupScore:
        """Idempotent get-or-create.

        Only the caller whose INSERT actually lands writes the INITIAL_GRANT
        entry; a concurrent creator makes ours a no-op and we re-read.
        """
        existing = await self.get_balance(db, group_id, user_id)
        if existing is not None:
            return existing

        result = await db.execute(
            _INSERT_SCORE_IF_ABSENT_SQL,
            {
                "id": generate_id(),
                "group_id": group_id,
                "user_id": user_id,
                "initial_points": initial_points,
            },
        )
        row = result.fetchone()
        if row is not None:
            score = _row_to_score(row)
            await self.write_entry(
                db, group_id, user_id, LedgerEntryType.INITIAL_GRANT.value,
                initial_points, score.total_points,
            )
            return score

        created = await self.get_balance(db, group_id, user_id)
        if created is None:
            raise InternalError(f"Score for {group_id}/{user_id} vanished after conflict")
        return created

    async def adjust(
        self, db: AsyncSession, group_id: str, user_id: str, delta: float
    ) -> GroupScore:
        result = await db.execute(
            _ADJUST_SQL, {"group_id": group_id, "user_id": user_id, "delta": delta}
        )
        row = result.fetchone()
        if row is None:
            raise NotAMemberError()
        return _row_to_score(row)

    async def debit(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        amount: float,
        ref_type: str,
        ref_id: str,
    ) -> GroupScore | None:
        """Conditional decrement. Returns None when total_points < amount."""
        result = await db.execute(
            _DEBIT_SQL, {"group_id": group_id, "user_id": user_id, "amount": amount}
        )
        row = result.fetchone()
        if row is None:
            return None
        score = _row_to_score(row)
        await self.write_entry(
            db, group_id, user_id, LedgerEntryType.STAKE_DEBIT.value,
            -amount, score.total_points, ref_type, ref_id,
        )
        return score

    async def credit(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        amount: float,
        ref_type: str,
        ref_id: str,
    ) -> GroupScore | None:
        """Increment. Returns None when the user has no ledger row in the group."""
        result = await db.execute(
            _ADJUST_SQL, {"group_id": group_id, "user_id": user_id, "delta": amount}
        )
        row = result.fetchone()
        if row is None:
            return None
        score = _row_to_score(row)
        await self.write_entry(
            db, group_id, user_id, LedgerEntryType.SETTLEMENT_PAYOUT.value,
            amount, score.total_points, ref_type, ref_id,
        )
        return score

    async def delete_balance(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> None:
        await db.execute(_DELETE_SCORE_SQL, {"group_id": group_id, "user_id": user_id})

    async def write_entry(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        entry_type: str,
        amount: float,
        balance_after: float,
        ref_type: str | None = None,
        ref_id: str | None = None,
    ) -> LedgerEntry:
        result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "group_id": group_id,
                "user_id": user_id,
                "entry_type": entry_type,
                "amount": amount,
                "balance_after": balance_after,
                "reference_type": ref_type,
                "reference_id": ref_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows: this should never happen")
        return _row_to_entry(row)

    async def list_entries(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_ENTRIES_SQL,
            {
                "group_id": group_id,
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_entry(row) for row in result.fetchall()]
