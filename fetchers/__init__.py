from . import admin
from . import dynamic
from . import form

SNAPSHOT_FETCHERS = {
    "form": form.fetch_snapshot,
    "dynamic": dynamic.fetch_snapshot,
}
