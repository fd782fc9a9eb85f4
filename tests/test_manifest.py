import io
import unittest
from hypothesis import given
from hypothesis.strategies import characters, lists, sampled_from, text

from unsignjar.core.jar.manifest import iter_lines, main_attributes, truncated

_BLANK = ''.join(map(chr, range(0x21)))

_line = text(alphabet=characters(blacklist_categories=('Cs',), blacklist_characters='\r\n'))

def _truncated(blob):
  return b''.join(truncated(io.BytesIO(blob)))

class ManifestTest(unittest.TestCase):
  def test_main_section_only(self):
    blob = b'Manifest-Version: 1.0\r\nCreated-By: X\r\n\r\nName: A.class\r\nSHA-256-Digest: abc\r\n\r\n'
    self.assertEqual(_truncated(blob), b'Manifest-Version: 1.0\nCreated-By: X\n\n')

  def test_lf_terminators(self):
    blob = b'Manifest-Version: 1.0\nCreated-By: X\n\nName: A.class\nSHA-256-Digest: abc\n'
    self.assertEqual(_truncated(blob), b'Manifest-Version: 1.0\nCreated-By: X\n\n')

  def test_cr_terminators(self):
    self.assertEqual(_truncated(b'A: 1\rB: 2\r\rName: x\r'), b'A: 1\nB: 2\n\n')

  def test_no_blank_line(self):
    self.assertEqual(_truncated(b'A: 1\nB: 2'), b'A: 1\nB: 2\n\n')
    self.assertEqual(_truncated(b'A: 1\nB: 2\n'), b'A: 1\nB: 2\n\n')

  def test_empty(self):
    self.assertEqual(_truncated(b''), b'\n')

  def test_leading_blank(self):
    self.assertEqual(_truncated(b'\nA: 1\n'), b'\n')
    self.assertEqual(_truncated(b'  \t \nA: 1\n'), b'\n')

  def test_whitespace_line_ends_section(self):
    self.assertEqual(_truncated(b'A: 1\n \t\nB: 2\n'), b'A: 1\n\n')

  def test_control_character_line_ends_section(self):
    self.assertEqual(_truncated(b'A: 1\n\x01\nB: 2\n'), b'A: 1\n\n')
    self.assertEqual(_truncated(b'A: 1\n\x00 \x1f\nB: 2\n'), b'A: 1\n\n')

  def test_unicode_space_line_kept(self):
    for space in ['\xa0', '\u2003', '\u3000']:
      blob = f'A: 1\n{space}\nB: 2\n'.encode('UTF-8')
      self.assertEqual(_truncated(blob), blob + b'\n', repr(space))

  def test_continuation_lines_kept(self):
    blob = b'Manifest-Version: 1.0\r\nClass-Path: a.jar b.jar c.jar d.ja\r\n r e.jar\r\n\r\nName: x\r\n'
    self.assertEqual(_truncated(blob), b'Manifest-Version: 1.0\nClass-Path: a.jar b.jar c.jar d.ja\n r e.jar\n\n')

  def test_utf8(self):
    blob = 'Implementation-Vendor: Ünïcödé\n\n'.encode('UTF-8')
    self.assertEqual(_truncated(blob), blob)

  def test_invalid_utf8(self):
    with self.assertRaises(UnicodeDecodeError):
      _truncated(b'A: \xff\xfe\n\n')

  def test_iter_lines_leaves_stream_open(self):
    f = io.BytesIO(b'A: 1\nB: 2\n')
    self.assertEqual(list(iter_lines(f)), ['A: 1', 'B: 2'])
    self.assertFalse(f.closed)

  def test_main_attributes_lazy(self):
    def lines():
      yield 'A: 1'
      yield ''
      raise AssertionError('read past the main section')
    self.assertEqual(list(main_attributes(lines())), ['A: 1'])

  @given(lists(_line), sampled_from(['\n', '\r\n', '\r']))
  def test_prefix_up_to_first_blank(self, lines, nl):
    expected = b''
    for l in lines:
      if not l.strip(_BLANK):
        break
      expected += l.encode('UTF-8') + b'\n'
    expected += b'\n'
    self.assertEqual(_truncated(nl.join(lines).encode('UTF-8')), expected)

  @given(lists(_line))
  def test_stable(self, lines):
    once = _truncated('\n'.join(lines).encode('UTF-8'))
    self.assertEqual(_truncated(once), once)
    self.assertTrue(once.endswith(b'\n'))

if __name__ == '__main__':
  unittest.main()
