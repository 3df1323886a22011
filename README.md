# dstask

A personal task tracker for the terminal. Each task is a small YAML file in
a git repository. Your task list therefore has a full history, changes can
be undone, and the list syncs between machines through an ordinary git
remote.

## Installing

    pip install .

`git` must be on your `PATH`.

## Where tasks live

The task database is a git repository at `~/.dstask`. To use another
location, set `DSTASK_GIT_REPO`. The first time you run a command that needs
the repository, it is created. When stdout is a terminal, you are asked
before it is created.

Tasks are kept in one directory per status, such as `pending`, `active`,
`paused`, `resolved` and `template`. Each task file is named after the
task's UUID.

Open tasks get a short numeric ID, which you use to refer to the task on the
command line. This ID stays the same on the local machine. The ID map and the
current context are stored as JSON under `.git/dstask/` inside the
repository, so they are never committed.

## Everyday use

    dstask add Fix main web page 500 error +bug P1 project:website
    dstask                      # show the most important open tasks
    dstask 3 start              # mark task 3 active
    dstask 3 stop               # pause it again
    dstask 3 note               # edit the markdown notes in $EDITOR (default vim)
    dstask 3 note more detail   # append a line to the notes
    dstask 3 edit               # edit the whole task as YAML
    dstask 3 open               # open every URL in the summary and notes
    dstask 3 done replaced the faulty cable
    dstask 3 remove
    dstask log Renewed passport # record something already finished
    dstask undo                 # revert the last commit (dstask undo 3 for three)
    dstask sync                 # git pull, then git push, against origin master
    dstask git status           # run any git command in the repository

How a command line is read:

* `+tag` adds a tag. `-tag` excludes a tag when filtering.
* `project:name` sets the project. `-project:name` excludes a project.
* `P0` (critical), `P1` (high), `P2` (normal, the default) and `P3` (low) set the priority.
* Any other words become the summary, or a search term when listing. The search ignores case and looks in both the summary and the notes.
* Words after a lone `/` become the task's note.

IDs and the command may come in either order. Give several IDs to act on
several tasks at once:

    dstask 4 7 modify +urgent

If you run `modify` without IDs, it changes every task in the current
context. On a terminal it asks for confirmation first.

Every change is committed to the repository straight away.

## Context

A context is a standing filter. It limits what listings show, and its tags,
project and priority are added to new tasks.

    dstask context +work -meetings
    dstask context              # print the current context
    dstask context none         # clear it

When `DSTASK_CONTEXT` is set, it takes the place of the stored context, and
you cannot set a context with `dstask context`. To ignore the context for a
single command, add `--` to that command.

## Reports

    dstask show-open          # every open task, without truncation
    dstask show-active
    dstask show-paused
    dstask show-resolved      # grouped by ISO week
    dstask show-projects      # progress per project
    dstask show-tags
    dstask show-templates
    dstask show-unorganised   # tasks with neither tags nor a project

On a terminal, listings are shown as coloured tables. Otherwise they are
written as JSON, which suits scripts:

    dstask show-open | python -m json.tool

Set `DSTASK_FAKE_PTY` to make dstask behave as if stdout were an 80x24
terminal.

## Templates

    dstask template Weekly review +admin / - [ ] inbox zero
    dstask add template:5 Weekly review for March

You cannot mark a task done while its notes still contain an unchecked
`- [ ] ` item.

## Importing from taskwarrior

    task export | dstask-import tw

The import reads a taskwarrior JSON export from stdin, adds the tasks it
does not already have, and commits the result.

## Help

    dstask help
    dstask help modify
    dstask version

## What it does not do

* `dstask-import` imports only from taskwarrior. It has no importer for
  issue trackers.
* No shell completion scripts are bundled. `dstask bash-completion`,
  `dstask zsh-completion` and `dstask fish-completion` exit with an error.
  The candidates themselves are still available. For example,
  `dstask _completions dstask add +w` prints every candidate for the last
  word typed, one per line.