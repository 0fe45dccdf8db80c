"""Tests for participation and result request schemas."""

import pytest
from pydantic import ValidationError

from tally_api.schemas.participation import (
    CommuneParticipationRequest,
    DepartmentSubmissionRequest,
    ParticipationPayload,
    ResultPayload,
)


class TestParticipationPayload:
    """Tests for ParticipationPayload."""

    def test_snake_case_fields(self) -> None:
        payload = ParticipationPayload(registered_count=1000, voter_count=750)
        assert payload.registered_count == 1000
        assert payload.voter_count == 750
        assert payload.expressed_suffrage_count is None

    def test_legacy_form_fields(self) -> None:
        payload = ParticipationPayload.model_validate(
            {
                "nombreBureauVote": "12",
                "nombreInscrit": "1000",
                "nombreVotant": "750",
                "bulletinNul": "10",
                "suffrageExprime": "740",
                "tauxParticipation": "75,0",
                "tauxAbstention": "25",
            }
        )
        assert payload.polling_station_count == 12
        assert payload.registered_count == 1000
        assert payload.null_ballot_count == 10
        assert payload.expressed_suffrage_count == 740
        assert payload.participation_rate == 75.0
        assert payload.abstention_rate == 25.0

    def test_malformed_counts_become_zero(self) -> None:
        payload = ParticipationPayload.model_validate(
            {"registered_count": "abc", "voter_count": "", "null_ballot_count": None}
        )
        assert payload.registered_count == 0
        assert payload.voter_count == 0
        assert payload.null_ballot_count == 0

    def test_negative_count_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ParticipationPayload.model_validate({"registered_count": -5})

    def test_absent_anomaly_counters_stay_absent(self) -> None:
        payload = ParticipationPayload.model_validate({"enveloppesVides": "3", "bulletinsSansEnveloppes": ""})
        counts = payload.anomaly_counts()
        assert counts["empty_envelope_count"] == 3
        assert counts["ballot_without_envelope_count"] is None
        assert "expressed_suffrage_count" not in counts

    def test_has_participation_data(self) -> None:
        assert ParticipationPayload().has_participation_data is False
        assert ParticipationPayload(voter_count=1).has_participation_data is True

    def test_to_figures_counts_absent_values_as_zero(self) -> None:
        figures = ParticipationPayload(registered_count=10, voter_count=5).to_figures()
        assert figures.valid_suffrages == 0
        assert figures.participation_rate == 0.0
        assert figures.abstention_rate == 0.0


class TestResultPayload:
    """Tests for ResultPayload."""

    def test_legacy_fields(self) -> None:
        result = ResultPayload.model_validate(
            {"codeCandidat": 5, "codeParti": "2", "nombreVote": "400", "pourcentage": "54,05"}
        )
        assert result.candidate_code == 5
        assert result.party_code == 2
        assert result.vote_count == 400
        assert result.percentage == 54.05

    def test_zero_party_code_means_unresolved(self) -> None:
        result = ResultPayload.model_validate({"candidate_code": 5, "party_code": 0, "vote_count": 1})
        assert result.party_code is None

    def test_candidate_code_required(self) -> None:
        with pytest.raises(ValidationError):
            ResultPayload.model_validate({"vote_count": 1})

    def test_negative_votes_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResultPayload.model_validate({"candidate_code": 5, "vote_count": -1})

    def test_percentage_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResultPayload.model_validate({"candidate_code": 5, "percentage": 120})


class TestSubmissionRequests:
    """Tests for the department and commune submission requests."""

    def test_department_request_with_legacy_keys(self) -> None:
        request = DepartmentSubmissionRequest.model_validate(
            {
                "participation": {"nombreInscrit": 1000, "nombreVotant": 750},
                "resultats": [{"codeCandidat": 5, "nombreVote": 740}],
                "forceValidation": True,
            }
        )
        assert request.participation.registered_count == 1000
        assert request.results[0].candidate_code == 5
        assert request.force_validation is True

    def test_department_request_requires_results(self) -> None:
        with pytest.raises(ValidationError):
            DepartmentSubmissionRequest.model_validate({"participation": {}})

    def test_commune_request_defaults_to_unforced(self) -> None:
        request = CommuneParticipationRequest.model_validate({"registered_count": 10, "voter_count": 5})
        assert request.force_validation is False
