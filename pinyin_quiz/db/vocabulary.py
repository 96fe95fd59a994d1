"""
Catalogue de vocabulaire (caractère, pinyin à tons numérotés).

Données figées : la table `words` est remplie au démarrage si elle est vide,
puis n'est plus jamais modifiée par l'application.
Ton neutre = pas de chiffre, ü = v.
"""
from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy import func, select

from pinyin_quiz.db.database import Store
from pinyin_quiz.db.models import Word

logger = logging.getLogger(__name__)

WORDS: List[Tuple[str, str]] = [
    ("爱", "ai4"),
    ("爱好", "ai4 hao4"),
    ("八", "ba1"),
    ("吧", "ba"),
    ("爸爸", "ba4 ba"),
    ("白", "bai2"),
    ("白天", "bai2 tian1"),
    ("班", "ban1"),
    ("半", "ban4"),
    ("半年", "ban4 nian2"),
    ("半天", "ban4 tian1"),
    ("帮", "bang1"),
    ("杯子", "bei1 zi"),
    ("北京", "bei3 jing1"),
    ("本", "ben3"),
    ("不", "bu4"),
    ("不客气", "bu4 ke4 qi"),
    ("菜", "cai4"),
    ("茶", "cha2"),
    ("吃", "chi1"),
    ("出租车", "chu1 zu1 che1"),
    ("打电话", "da3 dian4 hua4"),
    ("大", "da4"),
    ("的", "de"),
    ("点", "dian3"),
    ("电脑", "dian4 nao3"),
    ("电视", "dian4 shi4"),
    ("电影", "dian4 ying3"),
    ("东西", "dong1 xi"),
    ("都", "dou1"),
    ("读", "du2"),
    ("对不起", "dui4 bu qi3"),
    ("多", "duo1"),
    ("多少", "duo1 shao3"),
    ("儿子", "er2 zi"),
    ("二", "er4"),
    ("饭店", "fan4 dian4"),
    ("飞机", "fei1 ji1"),
    ("分钟", "fen1 zhong1"),
    ("高兴", "gao1 xing4"),
    ("个", "ge4"),
    ("工作", "gong1 zuo4"),
    ("狗", "gou3"),
    ("汉语", "han4 yu3"),
    ("好", "hao3"),
    ("号", "hao4"),
    ("喝", "he1"),
    ("和", "he2"),
    ("很", "hen3"),
    ("后面", "hou4 mian4"),
    ("回", "hui2"),
    ("会", "hui4"),
    ("几", "ji3"),
    ("家", "jia1"),
    ("叫", "jiao4"),
    ("今天", "jin1 tian1"),
    ("九", "jiu3"),
    ("开", "kai1"),
    ("看", "kan4"),
    ("看见", "kan4 jian4"),
    ("块", "kuai4"),
    ("来", "lai2"),
    ("老师", "lao3 shi1"),
    ("了", "le"),
    ("冷", "leng3"),
    ("里", "li3"),
    ("六", "liu4"),
    ("妈妈", "ma1 ma"),
    ("吗", "ma"),
    ("买", "mai3"),
    ("猫", "mao1"),
    ("没关系", "mei2 guan1 xi"),
    ("没有", "mei2 you3"),
    ("米饭", "mi3 fan4"),
    ("名字", "ming2 zi"),
    ("明天", "ming2 tian1"),
    ("哪", "na3"),
    ("那", "na4"),
    ("呢", "ne"),
    ("能", "neng2"),
    ("你", "ni3"),
    ("年", "nian2"),
    ("女儿", "nv3 er2"),
    ("朋友", "peng2 you"),
    ("漂亮", "piao4 liang"),
    ("苹果", "ping2 guo3"),
    ("七", "qi1"),
    ("前面", "qian2 mian4"),
    ("钱", "qian2"),
    ("请", "qing3"),
    ("去", "qu4"),
    ("热", "re4"),
    ("人", "ren2"),
    ("认识", "ren4 shi"),
    ("三", "san1"),
    ("商店", "shang1 dian4"),
    ("上", "shang4"),
    ("上午", "shang4 wu3"),
    ("少", "shao3"),
    ("谁", "shei2"),
    ("什么", "shen2 me"),
    ("十", "shi2"),
    ("时候", "shi2 hou"),
    ("是", "shi4"),
    ("书", "shu1"),
    ("水", "shui3"),
    ("水果", "shui3 guo3"),
    ("睡觉", "shui4 jiao4"),
    ("说", "shuo1"),
    ("四", "si4"),
    ("岁", "sui4"),
    ("他", "ta1"),
    ("她", "ta1"),
    ("太", "tai4"),
    ("天气", "tian1 qi4"),
    ("听", "ting1"),
    ("同学", "tong2 xue2"),
    ("喂", "wei4"),
    ("我", "wo3"),
    ("我们", "wo3 men"),
    ("五", "wu3"),
    ("喜欢", "xi3 huan"),
    ("下", "xia4"),
    ("下午", "xia4 wu3"),
    ("下雨", "xia4 yu3"),
    ("先生", "xian1 sheng"),
    ("现在", "xian4 zai4"),
    ("想", "xiang3"),
    ("小", "xiao3"),
    ("小姐", "xiao3 jie3"),
    ("些", "xie1"),
    ("写", "xie3"),
    ("谢谢", "xie4 xie"),
    ("星期", "xing1 qi1"),
    ("学生", "xue2 sheng"),
    ("学习", "xue2 xi2"),
    ("学校", "xue2 xiao4"),
    ("一", "yi1"),
    ("医生", "yi1 sheng1"),
    ("医院", "yi1 yuan4"),
    ("衣服", "yi1 fu"),
    ("椅子", "yi3 zi"),
    ("有", "you3"),
    ("月", "yue4"),
    ("在", "zai4"),
    ("再见", "zai4 jian4"),
    ("怎么", "zen3 me"),
    ("怎么样", "zen3 me yang4"),
    ("这", "zhe4"),
    ("中国", "zhong1 guo2"),
    ("中午", "zhong1 wu3"),
    ("住", "zhu4"),
    ("桌子", "zhuo1 zi"),
    ("字", "zi4"),
    ("昨天", "zuo2 tian1"),
    ("坐", "zuo4"),
    ("做", "zuo4"),
]


def seed_vocabulary(store: Store, words: List[Tuple[str, str]] = WORDS) -> int:
    """
    Remplit `words` si la table est vide. Retourne le nombre de mots en base.
    """
    with store.write() as db:
        count = db.execute(select(func.count(Word.id))).scalar_one()
        if count == 0:
            db.add_all(Word(character=c, pinyin=p) for c, p in words)
            count = len(words)
            logger.info("vocabulary seeded with %d words", count)
    return int(count)


def vocabulary_size(store: Store) -> int:
    with store.read() as db:
        return int(db.execute(select(func.count(Word.id))).scalar_one())
