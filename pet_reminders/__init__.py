"""宠物健康提醒：疫苗到期与每日用药的本地通知排程。"""
