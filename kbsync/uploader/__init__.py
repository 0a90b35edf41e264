# KBSync Uploader Module
# Final pipe stage pushing the diff to the destination

from kbsync.uploader.diff_uploader import DiffUploader
from kbsync.uploader.obsolete_document_remover import ObsoleteDocumentRemover

__all__ = ["DiffUploader", "ObsoleteDocumentRemover"]
