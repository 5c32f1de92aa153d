from ._types import Direction, LocalFile, RemoteObject, SyncReport, TransferError
from .config import SyncConfig
from .entries import Entry, EntryImage, load_entries, load_entry, parse_entry, search_index
from .exceptions import ConfigError, MetadataError, SrefSyncError
from .fingerprint import file_md5, is_multipart, needs_sync, normalize_fingerprint
from .keys import Namespace, local_path_to_remote_key, remote_key_to_local_path
from .plan import plan_download, plan_upload
from .remote import list_objects, make_client
from .scan import scan_asset_dir, scan_dist_tree, scan_entry_tree
from .sync import sync_from_remote, sync_to_cdn, sync_to_remote
from .transfer import download_object, run_transfers, upload_file

__all__ = [
    "Direction", "LocalFile", "RemoteObject", "SyncReport", "TransferError",
    "SyncConfig", "ConfigError", "MetadataError", "SrefSyncError",
    "Entry", "EntryImage", "load_entries", "load_entry", "parse_entry", "search_index",
    "file_md5", "is_multipart", "needs_sync", "normalize_fingerprint",
    "Namespace", "local_path_to_remote_key", "remote_key_to_local_path",
    "plan_download", "plan_upload",
    "list_objects", "make_client",
    "scan_asset_dir", "scan_dist_tree", "scan_entry_tree",
    "sync_from_remote", "sync_to_cdn", "sync_to_remote",
    "download_object", "run_transfers", "upload_file",
]
