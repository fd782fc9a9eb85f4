from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
  from typing import Literal, Tuple
  from typing_extensions import Final

  Disposition = Literal['copy', 'rewrite', 'drop']

MANIFEST_NAME: Final = 'META-INF/MANIFEST.MF'
META_INF: Final = 'META-INF/'
SIGNATURE_PREFIX: Final = 'META-INF/SIG-'
SIGNATURE_SUFFIXES: Final[Tuple[str, ...]] = ('.EC', '.SF', '.RSA', '.DSA')

def is_signature_artifact(name: str) -> bool:
  """Tells whether the entry belongs to the signature of the archive.

  The manifest counts as one, as it carries per-entry digests; the SIG- prefix rule holds regardless of suffix.
  """
  return (
    name == MANIFEST_NAME
    or name.startswith(SIGNATURE_PREFIX)
    or (name.startswith(META_INF) and name.endswith(SIGNATURE_SUFFIXES))
  )

def classify(name: str) -> Disposition:
  if name == MANIFEST_NAME:
    return 'rewrite'
  elif is_signature_artifact(name):
    return 'drop'
  else:
    return 'copy'
