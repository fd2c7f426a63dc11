"""SizedOnDisk code generator."""

from .bounds import augment_generics as augment_generics
from .config import GeneratorConfig as GeneratorConfig
from .emitter import derive as derive
from .emitter import derive_all as derive_all
from .emitter import emit as emit
from .emitter import render_all as render_all
from .emitter import render_file as render_file
from .expression import build_sum as build_sum
from .expression import render_sum as render_sum
from .fields import is_ignored as is_ignored
from .fields import select_fields as select_fields
from .parser import *
from .types import *
