from handygo.crypt.encrypt_decrypt import EncryptionDec


def test_hash_roundtrip():
    enc = EncryptionDec()
    hashed = enc.hash_password("correct horse")

    assert hashed != "correct horse"
    assert hashed.startswith("$2")
    assert enc.check_passwords("correct horse", hashed)
    assert not enc.check_passwords("wrong horse", hashed)


def test_hashes_are_salted():
    enc = EncryptionDec()

    assert enc.hash_password("same") != enc.hash_password("same")


def test_malformed_hash_does_not_match():
    assert EncryptionDec().check_passwords("anything", "not-a-bcrypt-hash") is False


def test_codes_match():
    enc = EncryptionDec()

    assert enc.codes_match("123456", "123456")
    assert not enc.codes_match("123456", "654321")
