from __future__ import annotations

import io

from trackersync.models import Issue, IssueState
from trackersync.snapshot import RULE, format_issue, write_issues, write_snapshot


def test_format_issue_marks_state():
    assert format_issue(Issue('Fix crash', id='3', details='trace')) == '3[O]: Fix crash\ntrace'
    assert format_issue(Issue('Old', id='4', state=IssueState.CLOSED)) == '4[C]: Old\n'


def test_write_issues_separates_with_rules():
    stream = io.StringIO()
    count = write_issues([Issue('A', id='1'), Issue('B', id='2', details='d')], stream)
    assert count == 2
    assert stream.getvalue() == f'1[O]: A\n\n{RULE}\n2[O]: B\nd\n{RULE}\n'


def test_write_snapshot_sections(tmp_path):
    target = tmp_path / 'out' / 'snapshot.txt'
    counts = write_snapshot({'GitHub': [Issue('A', id='1')], 'Trello': []}, target)
    assert counts == {'GitHub': 1, 'Trello': 0}
    text = target.read_text()
    assert text.startswith('# GitHub\n')
    assert '# Trello\n' in text
