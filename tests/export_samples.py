"""Sample three-section export rows used across tests."""

from typing import List


CHANGE_HEADER = (
    "id,fbid,date_closed,line_count,substantial_line_count,author,cloc_delta,"
    "lloc_delta,ploc_delta,is_codemod,is_bot,title,file_count,extensions,task_ids,"
    "reviewers,manager_chain,commenters,acceptors"
)
TASK_HEADER = (
    "task_number,title,priority,task_type,tags,is_sla,sla_start,sla_completion,sla_deadline"
)
FILE_HEADER = (
    "manager_chain,diff_fbids,repo,path,logical_complexity,code_coverage_percent,"
    "user_active_cgt_days_l180,user_active_pre_diff_cgt_days_l180,edit_count,ploc"
)

CHANGE_ROWS = [
    "1,D1,1700000000,10,8,alice,1,2,3,0,0,Fix crash,2,cpp/h,101,bob/carol,ceo/vp/dir/mgr1/alice,bob,carol",
    "2,D2,1700100000,5,5,bob,0,0,1,0,0,Add feature,1,py,102/103,alice,ceo/vp/dir/mgr2/bob,alice/dave,alice",
    "3,D3,1699900000,7,3,carol,0,0,0,1,0,Codemod cleanup,1,cpp,0,alice,ceo/vp/dir/mgr1/carol,,alice",
]
TASK_ROWS = [
    "101,Crash in parser,1,0,SEV Task:::parser,1,1699000000,1699500000,1700500000",
    "102,New widget,3,0,launch-blocking,0,0,0,0",
]
FILE_ROWS = [
    "ceo/vp/dir/mgrA/ownerA,D1/D3,fbcode,a/b/f.cpp,12,80,30,20,3,100",
    "ceo/vp/dir/mgrA/ownerA,D1,fbcode,fbcode/a/b/g.h,4,60,10,5,1,40",
    "ceo/vp/dir/mgrB/ownerB,D2,www,lib/x.py,2,90,5,3,2,50",
    "ceo/vp/dir/mgrB/ownerB,D99,www,lib/orphan.py,1,1,1,1,1,1",
]


def build_export(
    changes: List[str] = CHANGE_ROWS,
    tasks: List[str] = TASK_ROWS,
    files: List[str] = FILE_ROWS,
) -> str:
    """Join section rows into one export text."""
    lines = [CHANGE_HEADER, *changes, TASK_HEADER, *tasks, FILE_HEADER, *files]
    return "\n".join(lines) + "\n"


