from typing import Optional, List, Dict, Any
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leasedesk.core import BaseRepository
from leasedesk.models import Apartment, ApartmentStatus, LeaseType, _utcnow


# Fields the lease workflow is allowed to write
OCCUPANCY_FIELDS = frozenset({
    "owner_id",
    "tenant_id",
    "status",
    "is_listed_for_rent",
    "is_listed_for_sale",
})


class ApartmentRepository(BaseRepository[Apartment]):
    """Apartment directory: reads and occupancy writes used by the lease workflow"""

    def __init__(self, session: AsyncSession):
        super().__init__(Apartment, session)

    async def get_active(self, apartment_id: int) -> Optional[Apartment]:
        """Get apartment by ID, ignoring deactivated ones"""
        query = select(Apartment).where(
            Apartment.id == apartment_id,
            Apartment.is_active.is_(True),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_eligible_for_listing(
        self,
        listing: "LeaseType | str",
        *,
        skip: int = 0,
        limit: int = 100
    ) -> List[Apartment]:
        """Active, unoccupied apartments listed for rent or for sale"""
        listing = LeaseType(listing)
        flag = Apartment.is_listed_for_rent if listing is LeaseType.rent else Apartment.is_listed_for_sale
        query = (
            select(Apartment)
            .where(
                Apartment.is_active.is_(True),
                Apartment.status != ApartmentStatus.occupied.value,
                flag.is_(True),
            )
            .order_by(Apartment.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update_occupancy(
        self,
        apartment_id: int,
        fields: Dict[str, Any],
        *,
        require_unoccupied: bool = True
    ) -> bool:
        """Write occupancy fields in the caller's transaction.

        With *require_unoccupied* the write only applies while the apartment
        is still not occupied, so two approvals racing for one apartment
        cannot both succeed. Returns False when no row was updated.
        """
        unknown = set(fields) - OCCUPANCY_FIELDS
        if unknown:
            raise ValueError(f"Not occupancy fields: {sorted(unknown)}")

        stmt = (
            update(Apartment)
            .where(Apartment.id == apartment_id, Apartment.is_active.is_(True))
            .values(**fields, updated_at=_utcnow())
            .execution_options(synchronize_session=False)
        )
        if require_unoccupied:
            stmt = stmt.where(Apartment.status != ApartmentStatus.occupied.value)

        result = await self.session.execute(stmt)
        return result.rowcount > 0
