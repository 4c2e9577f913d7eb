import hashlib

import pytest

from core.conversion import (bytes_to_integer, bytes_to_string, extract,
                             integer_to_bytes, integer_to_string,
                             mark_byte_array, set_bit, string_to_integer,
                             truncate, xor_bytes)
from core.hashing import RecursiveHash
from core.models import Encryption, Point, SecurityParameters


class TestConversion:
    def test_integer_to_bytes_is_minimal_big_endian(self):
        assert integer_to_bytes(0) == b''
        assert integer_to_bytes(255) == b'\xff'
        assert integer_to_bytes(256) == b'\x01\x00'

    def test_integer_to_bytes_pads_to_length(self):
        assert integer_to_bytes(1, 4) == b'\x00\x00\x00\x01'
        with pytest.raises(ValueError):
            integer_to_bytes(256, 1)
        with pytest.raises(ValueError):
            integer_to_bytes(-1)

    def test_bytes_to_integer(self):
        assert bytes_to_integer(b'') == 0
        assert bytes_to_integer(b'\x01\x00') == 256

    def test_integer_to_string_uses_exactly_k_characters(self):
        assert integer_to_string(5, 3, "01") == "101"
        assert integer_to_string(5, 5, "01") == "00101"
        assert integer_to_string(61, 2, "0123456789") == "61"
        with pytest.raises(ValueError):
            integer_to_string(8, 3, "01")

    def test_string_to_integer(self):
        assert string_to_integer("101", "01") == 5
        assert string_to_integer("ba", "abc") == 3
        with pytest.raises(ValueError):
            string_to_integer("12", "01")

    def test_bytes_to_string_length_depends_on_input_length(self):
        assert bytes_to_string(b'\x00\x01', "01") == "0" * 15 + "1"
        assert len(bytes_to_string(b'\x00\x00', "0123456789abcdef")) == 4

    def test_xor_requires_equal_lengths(self):
        assert xor_bytes(b'\x0f\xf0', b'\xff\xff') == b'\xf0\x0f'
        with pytest.raises(ValueError):
            xor_bytes(b'\x00', b'\x00\x00')

    def test_truncate_and_extract(self):
        assert truncate(b'abcdef', 3) == b'abc'
        assert extract(b'abcdef', 1, 3) == b'bc'
        with pytest.raises(ValueError):
            truncate(b'ab', 3)
        with pytest.raises(ValueError):
            extract(b'abcdef', 3, 3)

    def test_set_bit_is_little_endian_within_a_byte(self):
        assert set_bit(b'\x00', 0, True) == b'\x01'
        assert set_bit(b'\x00', 7, True) == b'\x80'
        assert set_bit(b'\x00\xff', 8, False) == b'\x00\xfe'
        with pytest.raises(ValueError):
            set_bit(b'\x00', 8, True)

    def test_mark_byte_array(self):
        # m_max = 3 uses two bits, at positions 0 and 8
        assert mark_byte_array(b'\x00\x00', 3, 3) == b'\x01\x01'
        assert mark_byte_array(b'\x00\x00', 2, 3) == b'\x00\x01'
        assert mark_byte_array(b'\xff\xff', 0, 3) == b'\xfe\xfe'

    def test_marked_codes_of_different_positions_differ(self):
        marked = {mark_byte_array(b'\xab\xcd', m, 1678) for m in range(20)}
        assert len(marked) == 20

    def test_mark_byte_array_rejects_out_of_range_values(self):
        with pytest.raises(ValueError):
            mark_byte_array(b'\x00\x00', 4, 3)
        with pytest.raises(ValueError):
            mark_byte_array(b'\x00', 0, 1 << 9)


class TestRecursiveHash:
    @pytest.fixture
    def hash_function(self):
        return RecursiveHash(SecurityParameters(80, 80, 160, 0.999))

    @staticmethod
    def sha512_20(data: bytes) -> bytes:
        return hashlib.sha512(data).digest()[:20]

    def test_output_length(self, hash_function):
        assert len(hash_function.hash_l(b'')) == 20
        assert len(hash_function.rec_hash_l("a", 1, b'\x00')) == 20

    def test_leaf_encodings(self, hash_function):
        assert hash_function.rec_hash_l("abc") == self.sha512_20(b'abc')
        assert hash_function.rec_hash_l(256) == self.sha512_20(b'\x01\x00')
        assert hash_function.rec_hash_l(0) == self.sha512_20(b'')
        assert hash_function.rec_hash_l(b'\x01') == self.sha512_20(b'\x01')

    def test_sequences_hash_their_element_hashes(self, hash_function):
        expected = self.sha512_20(self.sha512_20(b'\x01') + self.sha512_20(b'\x02'))
        assert hash_function.rec_hash_l(1, 2) == expected
        assert hash_function.rec_hash_l([1, 2]) == expected
        assert hash_function.rec_hash_l((1, 2)) == expected

    def test_named_tuples_hash_like_tuples(self, hash_function):
        assert hash_function.rec_hash_l(Point(3, 4)) == hash_function.rec_hash_l((3, 4))
        assert hash_function.rec_hash_l([Encryption(5, 6)]) == hash_function.rec_hash_l([(5, 6)])

    def test_single_element_sequence_hashes_like_the_element(self, hash_function):
        assert hash_function.rec_hash_l([7]) == hash_function.rec_hash_l(7)

    def test_unsupported_types_are_rejected(self, hash_function):
        with pytest.raises(TypeError):
            hash_function.rec_hash_l(True)
        with pytest.raises(TypeError):
            hash_function.rec_hash_l(1.5)
        with pytest.raises(TypeError):
            hash_function.rec_hash_l([1, None])

    def test_digest_shorter_than_output_length_is_rejected(self):
        with pytest.raises(ValueError):
            RecursiveHash(SecurityParameters(80, 80, 160, 0.999), algorithm="md5")
