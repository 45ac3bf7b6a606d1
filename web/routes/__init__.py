"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- admin: 거래 승인/거부, 거래 목록, 통계, 잔고 정합 검사
- owners: 소유자 등록, 거래/잔고 조회, 입금/환전 생성, 출금 요청
"""
