"""
Folio — stable identifiers for flat-file content.

Pages move, files get renamed; their ids don't.

Domains:
  content/     flat-file records and the Site/Page/File/User models
  identity/    ids: parsing, resolution, generation, cache, index
  permalink.py /@/<scheme>/<id> links and their redirect route
  core.py      the App context: config, languages, auth, model lookup
  cli.py       `folio` command
"""
