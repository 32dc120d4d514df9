from ordering.utils import token_crypto


def test_generate_and_parse_roundtrip():
    tid, secret, full = token_crypto.generate_token()
    assert full.startswith("ord_cat_")
    assert len(tid) == 16
    parsed = token_crypto.parse_token(full)
    assert parsed is not None
    assert parsed.token_id == tid
    assert parsed.secret == secret


def test_parse_keeps_underscores_in_secret():
    parsed = token_crypto.parse_token("ord_cat_abc123_sec_with_underscores")
    assert parsed.token_id == "abc123"
    assert parsed.secret == "sec_with_underscores"


def test_parse_rejects_malformed_tokens():
    assert token_crypto.parse_token("") is None
    assert token_crypto.parse_token("hs_pat_abc_def") is None
    assert token_crypto.parse_token("ord_cat_abc") is None
    assert token_crypto.parse_token("ord_cat__secret") is None
    assert token_crypto.parse_token("ord_cat_abc_") is None


def test_hash_and_verify_secret():
    encoded = token_crypto.hash_secret("s3cr3t-test-value")
    assert encoded.startswith("$argon2id$")
    assert token_crypto.verify_secret("s3cr3t-test-value", encoded)
    assert not token_crypto.verify_secret("wrong-secret", encoded)
    assert not token_crypto.verify_secret("s3cr3t-test-value", "not-a-hash")
    assert not token_crypto.verify_secret("", encoded)


def test_passwords_use_the_same_hasher():
    encoded = token_crypto.hash_password("correct horse")
    assert token_crypto.verify_password("correct horse", encoded)
    assert not token_crypto.verify_password("battery staple", encoded)
