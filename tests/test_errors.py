"""Unit tests for the error taxonomy and recover() in core/errors.py.

Covers:
- the reply (status + body) for every failure kind on its own
- precedence: for any pair of kinds, the earlier kind wins in either order
- determinism: the same causes always give the same reply
- wrapped causes (SQL, network, argon2) never leak into the body
- an empty chain is 404 "Route not found"
"""

from itertools import combinations

import pytest

from core.errors import (
    INTERNAL_SERVER_ERROR,
    APILayerError,
    BodyDeserializeError,
    CannotDecryptToken,
    ClientError,
    CorsForbidden,
    DatabaseQueryError,
    ExternalAPIError,
    HashLibraryError,
    MiddlewareAPIError,
    MissingParameters,
    ParseError,
    Rejection,
    Reply,
    ServerError,
    WrongPassword,
    recover,
)

# ---------------------------------------------------------------------------
# One sample cause per precedence slot, in precedence order
# ---------------------------------------------------------------------------

RANKED: list[tuple[Exception, Reply]] = [
    (DatabaseQueryError("Failed to query accounts"), Reply(422, "Failed to query accounts")),
    (ExternalAPIError(ConnectionError("connection refused")), Reply(500, INTERNAL_SERVER_ERROR)),
    (MiddlewareAPIError(RuntimeError("max retries")), Reply(500, INTERNAL_SERVER_ERROR)),
    (ClientError(APILayerError(401, "Invalid authentication credentials")), Reply(500, INTERNAL_SERVER_ERROR)),
    (WrongPassword(), Reply(401, "Wrong email/password combination")),
    (ServerError(APILayerError(503, "Service Unavailable")), Reply(500, INTERNAL_SERVER_ERROR)),
    (CorsForbidden("method not allowed"), Reply(403, "CORS request forbidden: method not allowed")),
    (BodyDeserializeError("invalid JSON"), Reply(422, "Request body deserialize error: invalid JSON")),
    (CannotDecryptToken(), Reply(401, "cannot decrypt token")),
]


class TestSingleCause:
    @pytest.mark.parametrize("cause,expected", RANKED, ids=[type(c).__name__ for c, _ in RANKED])
    def test_reply(self, cause: Exception, expected: Reply) -> None:
        assert recover(Rejection([cause])) == expected

    def test_missing_parameters(self) -> None:
        assert recover(Rejection([MissingParameters("Authorization")])) == Reply(422, "Missing parameter")

    def test_parse_error_names_parameter(self) -> None:
        reply = recover(Rejection([ParseError("limit", "ten")]))
        assert reply.status_code == 422
        assert "limit" in reply.body
        assert "ten" in reply.body

    def test_hash_library_error_is_internal(self) -> None:
        reply = recover(Rejection([HashLibraryError(ValueError("Decoding failed"))]))
        assert reply == Reply(500, INTERNAL_SERVER_ERROR)

    def test_empty_chain_is_route_not_found(self) -> None:
        assert recover(Rejection()) == Reply(404, "Route not found")

    def test_non_domain_exception_is_route_not_found(self) -> None:
        assert recover(Rejection([KeyError("x")])) == Reply(404, "Route not found")


class TestPrecedence:
    @pytest.mark.parametrize("higher,lower", list(combinations(range(len(RANKED)), 2)))
    def test_earlier_kind_wins_in_either_order(self, higher: int, lower: int) -> None:
        winner, expected = RANKED[higher]
        loser, _ = RANKED[lower]
        assert recover(Rejection([winner, loser])) == expected
        assert recover(Rejection([loser, winner])) == expected

    def test_body_error_beats_missing_token(self) -> None:
        causes = [MissingParameters("Authorization"), BodyDeserializeError("title: Field required")]
        assert recover(Rejection(causes)) == Reply(422, "Request body deserialize error: title: Field required")

    def test_body_error_beats_bad_token(self) -> None:
        causes = [CannotDecryptToken(), BodyDeserializeError("invalid JSON")]
        assert recover(Rejection(causes)).status_code == 422

    def test_same_slot_uses_attachment_order(self) -> None:
        causes = [MissingParameters("limit", "offset"), ParseError("limit", "x")]
        assert recover(Rejection(causes)) == Reply(422, "Missing parameter")

    def test_deterministic(self) -> None:
        causes = [CannotDecryptToken(), BodyDeserializeError("invalid JSON"), MissingParameters("x")]
        replies = {recover(Rejection(causes)) for _ in range(25)}
        assert len(replies) == 1


class TestNoLeaks:
    def test_database_reply_is_generic(self) -> None:
        reply = recover(Rejection([DatabaseQueryError("Failed to add account")]))
        assert reply.body == "Failed to add account"
        assert "UNIQUE" not in reply.body

    def test_external_cause_not_in_body(self) -> None:
        reply = recover(Rejection([ExternalAPIError(ConnectionError("10.0.0.7:443 refused"))]))
        assert "10.0.0.7" not in reply.body

    def test_client_error_message_not_in_body(self) -> None:
        reply = recover(Rejection([ClientError(APILayerError(401, "No API key found in request"))]))
        assert "API key" not in reply.body


class TestRejection:
    def test_attach_keeps_order(self) -> None:
        rejection = Rejection()
        assert not rejection
        first, second = MissingParameters("a"), ParseError("b", "c")
        rejection.attach(first)
        rejection.attach(second)
        assert rejection
        assert rejection.causes == [first, second]

    def test_find_returns_first_match(self) -> None:
        first, second = MissingParameters("a"), MissingParameters("b")
        assert Rejection([first, second]).find(MissingParameters) is first
        assert Rejection([first]).find(WrongPassword) is None

    def test_database_error_str(self) -> None:
        assert str(DatabaseQueryError("Failed to query accounts")) == (
            "INTERNAL ERROR: Failed to query accounts check server logs"
        )

    def test_api_layer_error_str(self) -> None:
        assert str(APILayerError(429, "Too many requests")) == "Status: 429, Message: Too many requests"
