"""
Shared base for every node-doctor model.

Python attributes stay snake_case; serialized JSON uses camelCase keys
(``overallStatus``, ``nodesInPath``) so ``--json`` output keeps the
key names CI scripts already parse.  Both spellings are accepted on
input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DoctorModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
