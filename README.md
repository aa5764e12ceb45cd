# gogcli

`gog` is a command-line tool for working with Gmail, Google Calendar,
Google Contacts and Google Drive from a terminal or a script.

Every command prints tab-separated text by default, or a single JSON
document with `--output json`, which makes it easy to pipe into other tools.

## Install

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Account and access token

Most commands act on behalf of one account. Pass it with `--account`, or set
`GOG_ACCOUNT` once in your environment. If neither is given, the command stops
with `missing --account (or set GOG_ACCOUNT)`.

API calls are authorized with an OAuth access token read from
`GOG_ACCESS_TOKEN`; it is sent as a bearer token to every service. Without it
the command stops with `no access token for <account>: set GOG_ACCESS_TOKEN`.

```
export GOG_ACCOUNT=you@example.com
export GOG_ACCESS_TOKEN=token
```

Errors are printed to standard error as `Error: <message>` and the command
exits with status 1. `gog --help` (or a command group given without a
subcommand) prints help and exits with status 0.

## Examples

```
gog --help
gog --account you@example.com gmail search "newer_than:7d" --max 5
gog calendar calendars
gog calendar events primary --from 2025-12-17T00:00:00Z --to 2025-12-18T00:00:00Z --query standup
gog calendar create primary --summary "Standup" --start 2025-12-17T10:00:00Z --end 2025-12-17T10:15:00Z
gog calendar update primary <eventId> --summary "Daily standup"
gog calendar respond primary <eventId> --status accepted --send-updates all
gog calendar freebusy primary,team@example.com --from 2025-12-17T00:00:00Z --to 2025-12-18T00:00:00Z
gog contacts search Ada
gog contacts create --given Ada --family Lovelace --email ada@example.com
gog contacts update people/c1 --email ""
gog contacts directory search Ada
gog contacts other list --max 20
gog drive ls
gog drive search "quarterly report"
gog drive download <fileId>
gog drive upload ./notes.md --folder <folderId>
gog drive share <fileId> --email friend@example.com --role writer
gog --output json drive permissions <fileId>
```

## Commands

Global options: `--account`, `--output text|json`.

- **gmail**
  - `search <query...>` (`--max`, default 10; `--page`): threads with the date
    (`YYYY-MM-DD HH:MM`), sender, subject and label names of each thread's
    first message.
- **calendar**
  - `calendars`, `acl <calendarId>`
  - `events <calendarId>` (`--from`, `--to`, default now to one week later;
    `--max`, default 10; `--page`; `--query`)
  - `event <calendarId> <eventId>`
  - `create <calendarId>` (`--summary`, `--start`, `--end` required;
    `--description`, `--location`, `--attendees` comma-separated, `--all-day`
    to send `YYYY-MM-DD` dates)
  - `update <calendarId> <eventId>`: only the options given are changed;
    `--all-day`/`--no-all-day` also needs `--start` and `--end`.
  - `delete <calendarId> <eventId>`
  - `freebusy <calendarIds>` (comma-separated; `--from` and `--to` required)
  - `respond <calendarId> <eventId> --status accepted|declined|tentative`
    (`--send-updates all|none|externalOnly`, default `none`)
- **contacts**
  - `search <query...>` (`--max`, default 50), `list` (`--max`, default 100;
    `--page`)
  - `get <people/...|email>`: by resource name, or the best search match for
    an email address
  - `create` (`--given` required; `--family`, `--email`, `--phone`)
  - `update <people/...>`: only the options given are changed; an empty
    `--email` or `--phone` clears it
  - `delete <people/...>`
  - `directory list`, `directory search <query...>` (`--max`, default 50;
    `--page`)
  - `other list` (`--max`, default 100; `--page`), `other search <query...>`
    (`--max`, default 50)
- **drive**
  - `ls [folderId]` (default `root`; `--max`, default 20; `--page`; `--query`
    as an extra Drive filter; trashed files are left out unless the filter
    mentions `trashed`)
  - `search <text...>` (`--max`, default 20; `--page`)
  - `get <fileId>`
  - `download <fileId> [destPath]`: without a path the file is saved in the
    current directory as `<fileId>_<name>`. Google Docs formats are exported:
    documents and slides as PDF, sheets as CSV, drawings as PNG, with the file
    extension replaced to match.
  - `upload <localPath>` (`--name`, `--folder`); the content type is guessed
    from the file extension.
  - `mkdir <name>` (`--parent`), `delete <fileId>` (moves to trash),
    `move <fileId> <newParentId>`, `rename <fileId> <newName>`
  - `share <fileId>` (`--anyone` or `--email`; `--role reader|writer`;
    `--discoverable`), `unshare <fileId> <permissionId>`,
    `permissions <fileId>`, `url <fileId...>`

Paged listings print `# Next page: --page <token>` on standard error; pass the
token back with `--page` to continue.

## Using it from Python

Each command is a function taking a `gogcli.runtime.Runtime`, for example
`gogcli.drive.list_files(rt, "root")` or
`gogcli.calendar_cmds.list_events(rt, "primary")`. The runtime holds the
account, the output mode, the output streams and one
`gogcli.runtime.ServiceClient` per API; clients can be passed in through
`Runtime(clients={...})`. Calls that fail raise `gogcli.runtime.ApiError`,
and invalid arguments raise `ValueError`.

`gogcli.gmail.download_attachment_to_path(service, message_id, attachment_id,
out_path, expected_size)` saves a message attachment and returns
`(path, cached, size)`, reusing a file already on disk when its size matches
`expected_size`.

## What it does not do

- It does not sign in or store credentials: there is no OAuth flow, no
  keyring and no token refresh. An access token must be supplied in
  `GOG_ACCESS_TOKEN`.
- Gmail is limited to thread search on the command line; reading or sending
  messages, drafts and labels are not offered, and attachment download is
  available only from Python.