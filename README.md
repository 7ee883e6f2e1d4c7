# lodestone

lodestone gathers signals from the AI ecosystem (GitHub repositories, Hacker
News stories, npm packages, arXiv papers and vendor changelogs), keeps an
audit log of what was done, reads a repository's Node.js dependencies, and
provides the safety gates, state file and git/`gh` runners needed to turn a
low-risk recommendation into a draft pull request.

It is a library; everything below is used from Python.

## Configuration

A repository may carry a `.lodestone.yaml`. Every field is optional; missing
fields keep their defaults.

```yaml
goals: [reliability]
tech_interests: [mcp, llm-tools]

lodestone:
  min_stars: 50
  min_age_days: 30
  max_last_commit_age_days: 180
  require_license: true
```

```python
from lodestone.config import load, defaults

cfg = load(".lodestone.yaml")   # a missing or empty file yields defaults()
print(cfg.goals, cfg.lodestone.min_stars)
```

`load` returns a `Config` holding a `LodestoneConfig`. Invalid YAML, or
values of the wrong type, raise `ConfigError`.

## Fetching signals

Every source has a `name()` and a `fetch()` that returns a list of
`lodestone.ingest.source.Signal` objects.

```python
from lodestone.ingest.github_trending import GithubTrending
from lodestone.ingest.hackernews import HackerNews
from lodestone.ingest.npm_trending import NPMTrending
from lodestone.ingest.arxiv import ArXiv
from lodestone.ingest.changelog import anthropic_changelog, openai_changelog

cache = ".lodestone/cache"
sources = [
    GithubTrending(cache_dir=cache, min_stars=50, recent_days=30),
    HackerNews(cache_dir=cache, keywords=["ai", "llm"]),
    NPMTrending(cache_dir=cache, keywords="ai,mcp"),
    ArXiv(cache_dir=cache, query="cat:cs.AI"),
    anthropic_changelog(cache_dir=cache),
    openai_changelog(cache_dir=cache),
]
for source in sources:
    signals = source.fetch()
    print(source.name(), len(signals))
```

- `GithubTrending` searches for repositories with at least `min_stars` stars
  pushed within the last `recent_days` days. Without an explicit `token` it
  uses the `GITHUB_TOKEN` environment variable and sends it as a bearer token.
- `HackerNews` scans up to `scan_limit` top stories and keeps at most
  `final_limit` stories whose title contains one of the keywords
  (`match_keywords`). Stories without a URL link to their Hacker News page.
- `NPMTrending` builds a `keywords:a keywords:b` search (`build_query`) and
  maps each package's final score to `stars` (score × 1000, rounded).
- `ArXiv` queries the newest submissions; `parse_atom` turns a feed into
  signals on its own.
- `ChangelogScraper` reads the `h2`/`h3` headings of a changelog page, taking
  a leading `YYYY-MM-DD` as the entry date and a heading `id` as URL fragment;
  `parse_changelog_html`, `strip_tags` and `extract_date` are available
  directly. At most `max_entries` entries are kept.

Failures are retried by `lodestone.ingest.retry.retry_fetch` with exponential
backoff (three attempts, 0.2 s doubling up to 5 s). Transport errors, HTTP 5xx
and 429 are retried; other statuses raise `HttpStatusError` at once. When all
attempts fail, `MaxRetriesExceeded` is raised. Each source accepts `now` and
`sleep` callables, which makes it easy to test.

With a `cache_dir`, results are stored as `<source>-<YYYY-MM-DD>.json` and
served from there for the rest of the day (`lodestone.ingest.cache`).
Signal identifiers are stable: `signal_id(source, url)` is `sha256:` followed
by the SHA-256 of `source|url`.

## Node.js dependencies

```python
from lodestone.fingerprint.node import parse_package_json

deps, frameworks = parse_package_json(".")
```

Reads `package.json`, merges `dependencies` with `devDependencies` (regular
dependencies win) and returns the sorted list of recognised frameworks
(react, vue, next, svelte, anthropic-sdk, mcp-sdk). A missing file gives
`({}, [])`.

## Audit log

```python
from lodestone.audit import AuditLog, Entry

log = AuditLog(".lodestone")
log.record(Entry(verb="score", outcome="ok", detail="signals=12"))
print(log.path())
```

Entries are appended as JSON lines to `.lodestone/decisions.log`; an entry
without a timestamp gets the current UTC time.

## Safety gates, apply state and runners

`lodestone.apply.gates` decides whether a recommendation may be applied:

- `check_recommendation(rec)` passes only for `Risk.LOW`, `Effort.XS` and a
  compatibility of at least 0.85;
- `check_rate_limit(applies, now)` fails if any apply lies within the last
  24 hours;
- `check_clean_git(status)` passes only for empty `git status --porcelain`
  output.

Each returns a `GateResult` with `passed` and a list of `GateViolation`s.
`GateError` is an exception carrying such violations for callers that want
to stop on a failed gate.

`lodestone.apply.state.ApplyState` keeps `ApplyRecord`s in
`<root>/applies.jsonl`: `append`, `list`, `find_by` (branch or recommendation
id, `None` if absent) and `replace`, which atomically rewrites the file with
the updated record for its branch.

`lodestone.apply.runners.RealGit` runs `git` (status, switch -c, add, commit,
push, branch deletion locally and remotely) and `RealPR` creates and closes
draft pull requests with the `gh` command-line tool. Both raise
`CommandError` when the tool is missing or exits unsuccessfully.
`parse_pr_number` extracts the number from a pull-request URL. The
`GitRunner` and `PRRunner` protocols describe what a replacement must offer.

## What this package does not do

- There is no command-line program; everything is called from Python.
- There is no complete repository analysis: only `package.json` is read.
  Lines of code, `go.mod`, CI and MCP detection are not covered.
- Signals are not scored, and no specs or plans are generated.
- There is no engine that chains gates, planning, branching, committing,
  pushing and pull-request creation into one apply or undo step; the gates,
  state and runners are the building blocks for that.