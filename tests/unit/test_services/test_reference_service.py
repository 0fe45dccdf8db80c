"""Tests for reference data listing and loading."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tally_api.models.identity import Identity
from tally_api.schemas.participation import DepartmentSubmissionRequest
from tally_api.schemas.reference import ReferenceDataFile
from tally_api.services.reference_service import (
    NO_ASSIGNMENT_MESSAGE,
    list_candidates,
    list_departments,
    list_parties,
    list_regions,
    load_reference_data,
)
from tally_api.services.scope_service import UNRESTRICTED, AccessScope
from tally_api.services.submission_service import submit_department_results
from tests.factories import participation_payload


class TestListings:
    """Tests for the plain reference listings."""

    @pytest.mark.asyncio
    async def test_regions_by_label(self, async_session: AsyncSession, reference_data: None) -> None:
        regions = await list_regions(async_session)
        assert [r.label for r in regions] == ["Centre", "Littoral"]
        assert sorted(d.code for d in regions[0].departments) == [10, 11]

    @pytest.mark.asyncio
    async def test_parties_by_code(self, async_session: AsyncSession, reference_data: None) -> None:
        assert [p.code for p in await list_parties(async_session)] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_candidate_parties_ordered_by_code(self, async_session: AsyncSession, reference_data: None) -> None:
        candidates = {c.code: c for c in await list_candidates(async_session)}
        assert [p.code for p in candidates[5].parties] == [2, 3]
        assert candidates[5].primary_party.code == 2
        assert candidates[7].parties == []
        assert candidates[7].primary_party is None


class TestListDepartments:
    """Tests for list_departments."""

    @pytest.mark.asyncio
    async def test_unrestricted(self, async_session: AsyncSession, reference_data: None) -> None:
        listing = await list_departments(async_session, UNRESTRICTED)
        assert listing.count == 4
        assert [d.code for d in listing.items] == [11, 10, 99, 20]
        assert listing.message is None

    @pytest.mark.asyncio
    async def test_restricted_scope(self, async_session: AsyncSession, reference_data: None) -> None:
        listing = await list_departments(async_session, AccessScope(department_codes=frozenset({10, 11})))
        assert [d.code for d in listing.items] == [11, 10]
        mfoundi = listing.items[1]
        assert mfoundi.region.label == "Centre"
        assert [c.code for c in mfoundi.communes] == [1001, 1002, 1003]

    @pytest.mark.asyncio
    async def test_empty_scope(self, async_session: AsyncSession, reference_data: None) -> None:
        listing = await list_departments(async_session, AccessScope())
        assert listing.count == 0
        assert listing.items == []
        assert listing.message == NO_ASSIGNMENT_MESSAGE

    @pytest.mark.asyncio
    async def test_region_filter(self, async_session: AsyncSession, reference_data: None) -> None:
        listing = await list_departments(async_session, UNRESTRICTED, region_code=2)
        assert [d.code for d in listing.items] == [99, 20]

    @pytest.mark.asyncio
    async def test_region_filter_within_scope(self, async_session: AsyncSession, reference_data: None) -> None:
        listing = await list_departments(
            async_session, AccessScope(department_codes=frozenset({10, 99})), region_code=2
        )
        assert [d.code for d in listing.items] == [99]

    @pytest.mark.asyncio
    async def test_lock_flags(self, async_session: AsyncSession, identities: dict[str, Identity]) -> None:
        request = DepartmentSubmissionRequest.model_validate(
            {"participation": participation_payload(), "results": [{"candidate_code": 5, "vote_count": 740}]}
        )
        await submit_department_results(async_session, 10, request, identity=identities["admin"], scope=UNRESTRICTED)

        listing = await list_departments(async_session, UNRESTRICTED)
        flags = {d.code: (d.is_locked, d.has_results) for d in listing.items}
        assert flags == {10: (True, True), 11: (False, False), 20: (False, False), 99: (False, False)}


class TestLoadReferenceData:
    """Tests for load_reference_data."""

    @pytest.mark.asyncio
    async def test_load_into_empty_store(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        bundle = ReferenceDataFile.model_validate(
            {
                "regions": [{"code": 3, "label": "Ouest"}],
                "departments": [{"code": 30, "label": "Mifi", "region_code": 3}],
                "communes": [{"code": 3001, "label": "Bafoussam I", "department_code": 30}],
                "parties": [{"code": 1, "label": "Independent"}, {"code": 4, "label": "Party Four"}],
                "candidates": [{"code": 8, "last_name": "Eight", "party_codes": [4, 4, 1]}],
            }
        )
        async with session_factory() as session:
            counts = await load_reference_data(session, bundle)
        assert counts == {
            "regions": 1,
            "departments": 1,
            "communes": 1,
            "parties": 2,
            "candidates": 1,
            "candidate_parties": 2,
        }

        async with session_factory() as session:
            candidates = await list_candidates(session)
            assert [p.code for p in candidates[0].parties] == [1, 4]
            listing = await list_departments(session, UNRESTRICTED)
            assert [d.code for d in listing.items] == [30]

    @pytest.mark.asyncio
    async def test_reload_updates_and_replaces_links(
        self, session_factory: async_sessionmaker[AsyncSession], reference_data: None
    ) -> None:
        bundle = ReferenceDataFile.model_validate(
            {
                "regions": [{"code": 1, "label": "Centre Region"}],
                "candidates": [{"code": 6, "last_name": "Six", "party_codes": [2, 1]}],
            }
        )
        async with session_factory() as session:
            await load_reference_data(session, bundle)
        # Loading the same bundle again changes nothing
        async with session_factory() as session:
            await load_reference_data(session, bundle)

        async with session_factory() as session:
            regions = await list_regions(session)
            assert [r.label for r in regions] == ["Centre Region", "Littoral"]
            candidates = {c.code: c for c in await list_candidates(session)}
            assert [p.code for p in candidates[6].parties] == [1, 2]
            # Candidates absent from the bundle keep their links
            assert [p.code for p in candidates[5].parties] == [2, 3]
