"""Execution pipeline for a single job.

This package contains the core execution components:

- **resolver**: Job resolution (extends chain -> ResolvedJob)
- **environment**: Environment assembly (variables -> ordered KEY=VALUE list)
- **script**: Script assembly and the temporary script file
- **mirror**: Registry mirror stripping
- **pull**: Image pull with progress rendering
- **container**: Container provisioning, output relay, and wait
- **coordinator**: End-to-end orchestration (resolve -> pull -> script -> run)
"""
