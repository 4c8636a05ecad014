# Services package init
"""
Vitrine Backend — Services Layer
=================================

What:  Business logic between routes (HTTP) and the two stores.

Service Inventory:
    - BlobStore (protocol): image bytes by path; SupabaseBlobStore over the
      Storage REST API, LocalBlobStore on the filesystem
    - ItemRepository / StatsRepository: row operations on `items` and `stats`
    - ItemService: create/read/list/update/delete saga over blob + row
    - VisitCounter: atomic increment and read of the singleton counter
    - staged_upload: lifecycle of a multipart upload

Services receive their collaborators through constructors, so tests swap in
fakes and mocks without HTTP or network.
"""
