"""Shared fixtures for core unit tests"""

import pytest

from mdsite.core.markup.parser import parse
from mdsite.core.models import Variant


SAMPLE_MD = """\
# Overview

A paragraph with **bold** text and a [link](https://example.com).

## Details

- item one
- item two

```python
print("hello")
```

# Overview

Closing words, see [about](/about).
"""


@pytest.fixture(name="sample_tree")
def sample_tree_fixture():
    return parse(SAMPLE_MD, Variant.baseline)
